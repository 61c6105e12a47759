"""Contact requests and recommendations between alumni."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from cpsconnect.alumni.domain.container import get_contact_service, get_directory, get_recommendation_service
from cpsconnect.alumni.domain.policy import AlumniError, RateLimited
from cpsconnect.alumni.domain.rbac import Actor
from cpsconnect.alumni.domain.schemas import (
	ContactRequestIn,
	ContactRequestOut,
	RecommendationIn,
	RecommendationOut,
)
from cpsconnect.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/alumni", tags=["alumni-contact"])


def _map_error(exc: AlumniError) -> HTTPException:
	headers = {"Retry-After": "3600"} if isinstance(exc, RateLimited) else None
	return HTTPException(status_code=exc.status_code, detail=exc.reason, headers=headers)


@router.post("/{uid}/contact", response_model=ContactRequestOut, status_code=status.HTTP_201_CREATED)
async def contact_alumni(
	uid: str,
	payload: ContactRequestIn,
	user: AuthenticatedUser = Depends(get_current_user),
) -> ContactRequestOut:
	try:
		request = await get_contact_service().contact_profile(Actor.from_user(user), uid, payload.subject, payload.message)
	except AlumniError as exc:
		raise _map_error(exc) from None
	return ContactRequestOut.from_domain(request)


@router.post("/{uid}/recommendations", response_model=RecommendationOut, status_code=status.HTTP_201_CREATED)
async def recommend_alumni(
	uid: str,
	payload: RecommendationIn,
	user: AuthenticatedUser = Depends(get_current_user),
) -> RecommendationOut:
	try:
		recommendation = await get_recommendation_service().send_recommendation(Actor.from_user(user), uid, payload.message)
	except AlumniError as exc:
		raise _map_error(exc) from None
	return RecommendationOut.from_domain(recommendation)


@router.get("/{uid}/recommendations", response_model=list[RecommendationOut])
async def list_recommendations(uid: str) -> list[RecommendationOut]:
	try:
		await get_directory().get_public(uid)
		items = await get_recommendation_service().received(uid)
	except AlumniError as exc:
		raise _map_error(exc) from None
	return [RecommendationOut.from_domain(item) for item in items]
