"""Moderator endpoints: review queue, decisions, deletion, statistics and bulk import."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from cpsconnect.alumni.domain.container import get_moderation
from cpsconnect.alumni.domain.models import AlumniStatus
from cpsconnect.alumni.domain.policy import AlumniError
from cpsconnect.alumni.domain.rbac import Actor
from cpsconnect.alumni.domain.schemas import (
	ImportRequest,
	ImportResultOut,
	ProfileOut,
	RejectRequest,
	StatsOut,
)
from cpsconnect.infra.auth import AuthenticatedUser, get_admin_user

router = APIRouter(prefix="/alumni/admin", tags=["alumni-admin"])


def _map_error(exc: AlumniError) -> HTTPException:
	return HTTPException(status_code=exc.status_code, detail=exc.reason)


@router.get("/queue", response_model=list[ProfileOut])
async def review_queue(
	status_filter: AlumniStatus = Query(default=AlumniStatus.PENDING, alias="status"),
	limit: Optional[int] = Query(default=None, ge=1, le=1000),
	admin: AuthenticatedUser = Depends(get_admin_user),
) -> list[ProfileOut]:
	try:
		profiles = await get_moderation().queue(Actor.from_user(admin), status_filter, limit=limit)
	except AlumniError as exc:
		raise _map_error(exc) from None
	return [ProfileOut.from_domain(profile) for profile in profiles]


@router.get("/stats", response_model=StatsOut)
async def directory_stats(admin: AuthenticatedUser = Depends(get_admin_user)) -> StatsOut:
	try:
		stats = await get_moderation().stats(Actor.from_user(admin))
	except AlumniError as exc:
		raise _map_error(exc) from None
	return StatsOut.from_domain(stats)


@router.post("/import", response_model=ImportResultOut)
async def import_profiles(
	payload: ImportRequest,
	admin: AuthenticatedUser = Depends(get_admin_user),
) -> ImportResultOut:
	rows = [row.model_dump() for row in payload.rows]
	try:
		result = await get_moderation().import_profiles(Actor.from_user(admin), rows, source=payload.source)
	except AlumniError as exc:
		raise _map_error(exc) from None
	return ImportResultOut.from_domain(result)


@router.post("/{uid}/approve", response_model=ProfileOut)
async def approve_profile(uid: str, admin: AuthenticatedUser = Depends(get_admin_user)) -> ProfileOut:
	try:
		profile = await get_moderation().approve(Actor.from_user(admin), uid)
	except AlumniError as exc:
		raise _map_error(exc) from None
	return ProfileOut.from_domain(profile)


@router.post("/{uid}/reject", response_model=ProfileOut)
async def reject_profile(
	uid: str,
	payload: RejectRequest,
	admin: AuthenticatedUser = Depends(get_admin_user),
) -> ProfileOut:
	try:
		profile = await get_moderation().reject(Actor.from_user(admin), uid, payload.reason)
	except AlumniError as exc:
		raise _map_error(exc) from None
	return ProfileOut.from_domain(profile)


@router.delete("/{uid}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_profile(uid: str, admin: AuthenticatedUser = Depends(get_admin_user)) -> Response:
	try:
		await get_moderation().delete(Actor.from_user(admin), uid)
	except AlumniError as exc:
		raise _map_error(exc) from None
	return Response(status_code=status.HTTP_204_NO_CONTENT)
