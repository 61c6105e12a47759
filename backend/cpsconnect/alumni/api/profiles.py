"""Owner endpoints for creating, editing and submitting an alumni profile."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status

from cpsconnect.alumni.domain import completion
from cpsconnect.alumni.domain.container import (
	get_directory,
	get_lifecycle,
	get_moderation,
	get_recommendation_service,
)
from cpsconnect.alumni.domain.policy import AlumniError
from cpsconnect.alumni.domain.rbac import Actor
from cpsconnect.alumni.domain.schemas import (
	CompletionOut,
	HasProfileOut,
	ProfileCreateRequest,
	ProfileOut,
	ProfilePatchRequest,
	RecommendationOut,
)
from cpsconnect.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/alumni/profile", tags=["alumni-profile"])


def _map_error(exc: AlumniError) -> HTTPException:
	return HTTPException(status_code=exc.status_code, detail=exc.reason)


@router.post("", response_model=ProfileOut, status_code=status.HTTP_201_CREATED)
async def create_profile(
	payload: ProfileCreateRequest,
	user: AuthenticatedUser = Depends(get_current_user),
) -> ProfileOut:
	try:
		profile = await get_lifecycle().create(user.id, payload.to_fields(), submit=payload.submit)
	except AlumniError as exc:
		raise _map_error(exc) from None
	return ProfileOut.from_domain(profile)


@router.get("/me", response_model=ProfileOut)
async def get_my_profile(user: AuthenticatedUser = Depends(get_current_user)) -> ProfileOut:
	try:
		profile = await get_lifecycle().get(user.id)
	except AlumniError as exc:
		raise _map_error(exc) from None
	return ProfileOut.from_domain(profile)


@router.get("/me/exists", response_model=HasProfileOut)
async def has_my_profile(user: AuthenticatedUser = Depends(get_current_user)) -> HasProfileOut:
	try:
		found = await get_directory().has_profile(user.id)
	except AlumniError as exc:
		raise _map_error(exc) from None
	return HasProfileOut(has_profile=found)


@router.patch("/me", response_model=ProfileOut)
async def patch_my_profile(
	payload: ProfilePatchRequest,
	user: AuthenticatedUser = Depends(get_current_user),
) -> ProfileOut:
	try:
		profile = await get_lifecycle().update(user.id, payload.to_fields())
	except AlumniError as exc:
		raise _map_error(exc) from None
	return ProfileOut.from_domain(profile)


@router.post("/me/submit", response_model=ProfileOut)
async def submit_my_profile(user: AuthenticatedUser = Depends(get_current_user)) -> ProfileOut:
	try:
		profile = await get_lifecycle().submit(user.id)
	except AlumniError as exc:
		raise _map_error(exc) from None
	return ProfileOut.from_domain(profile)


@router.delete("/me", status_code=status.HTTP_204_NO_CONTENT)
async def delete_my_profile(user: AuthenticatedUser = Depends(get_current_user)) -> Response:
	try:
		await get_moderation().delete(Actor.from_user(user), user.id)
	except AlumniError as exc:
		raise _map_error(exc) from None
	return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me/completion", response_model=CompletionOut)
async def my_profile_completion(user: AuthenticatedUser = Depends(get_current_user)) -> CompletionOut:
	try:
		profile = await get_lifecycle().get(user.id)
	except AlumniError as exc:
		raise _map_error(exc) from None
	return CompletionOut.from_domain(completion.evaluate(profile))


@router.get("/me/recommendations/received", response_model=list[RecommendationOut])
async def my_received_recommendations(user: AuthenticatedUser = Depends(get_current_user)) -> list[RecommendationOut]:
	try:
		items = await get_recommendation_service().received(user.id)
	except AlumniError as exc:
		raise _map_error(exc) from None
	return [RecommendationOut.from_domain(item) for item in items]


@router.get("/me/recommendations/sent", response_model=list[RecommendationOut])
async def my_sent_recommendations(user: AuthenticatedUser = Depends(get_current_user)) -> list[RecommendationOut]:
	try:
		items = await get_recommendation_service().sent(user.id)
	except AlumniError as exc:
		raise _map_error(exc) from None
	return [RecommendationOut.from_domain(item) for item in items]
