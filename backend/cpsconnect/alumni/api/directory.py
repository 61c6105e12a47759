"""Public directory endpoints; only approved profiles are served."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query

from cpsconnect.alumni.domain.container import get_directory
from cpsconnect.alumni.domain.directory import DirectorySort
from cpsconnect.alumni.domain.filters import DirectoryFilters
from cpsconnect.alumni.domain.policy import YEAR_PROMO_MAX, YEAR_PROMO_MIN, AlumniError
from cpsconnect.alumni.domain.schemas import PublicProfileOut

router = APIRouter(prefix="/alumni/directory", tags=["alumni-directory"])


def _map_error(exc: AlumniError) -> HTTPException:
	return HTTPException(status_code=exc.status_code, detail=exc.reason)


def _has_filters(filters: DirectoryFilters) -> bool:
	return any(
		(
			(filters.query or "").strip(),
			filters.sectors,
			filters.expertise,
			filters.seeking,
			filters.offering,
			filters.soft_skills,
			filters.languages,
			filters.year_promos,
			filters.year_promo_min is not None,
			filters.year_promo_max is not None,
			filters.city,
			filters.country,
			filters.availability,
		)
	)


@router.get("", response_model=list[PublicProfileOut])
async def browse_directory(
	q: Optional[str] = Query(default=None, max_length=200),
	sectors: List[str] = Query(default=[]),
	expertise: List[str] = Query(default=[]),
	seeking: List[str] = Query(default=[]),
	offering: List[str] = Query(default=[]),
	soft_skills: List[str] = Query(default=[]),
	languages: List[str] = Query(default=[]),
	year_promos: List[int] = Query(default=[]),
	year_promo_min: Optional[int] = Query(default=None, ge=YEAR_PROMO_MIN, le=YEAR_PROMO_MAX),
	year_promo_max: Optional[int] = Query(default=None, ge=YEAR_PROMO_MIN, le=YEAR_PROMO_MAX),
	city: Optional[str] = Query(default=None, max_length=200),
	country: Optional[str] = Query(default=None, max_length=200),
	availability: Optional[str] = Query(default=None, max_length=200),
	sort: DirectorySort = Query(default=DirectorySort.DATE_CREATED),
	limit: int = Query(default=50, ge=1, le=200),
) -> list[PublicProfileOut]:
	"""Without filters this is the plain approved listing; with any filter results come back sorted by name."""
	filters = DirectoryFilters(
		query=q,
		sectors=sectors,
		expertise=expertise,
		seeking=seeking,
		offering=offering,
		soft_skills=soft_skills,
		languages=languages,
		year_promos=year_promos,
		year_promo_min=year_promo_min,
		year_promo_max=year_promo_max,
		city=city,
		country=country,
		availability=availability,
	)
	directory = get_directory()
	try:
		if _has_filters(filters):
			profiles = await directory.search_directory(filters, sort=sort, limit=limit)
		else:
			profiles = await directory.list_approved(sort, limit)
	except AlumniError as exc:
		raise _map_error(exc) from None
	return [PublicProfileOut.from_domain(profile) for profile in profiles]


@router.get("/latest", response_model=list[PublicProfileOut])
async def latest_profiles(count: int = Query(default=3, ge=1, le=50)) -> list[PublicProfileOut]:
	try:
		profiles = await get_directory().latest_approved(count)
	except AlumniError as exc:
		raise _map_error(exc) from None
	return [PublicProfileOut.from_domain(profile) for profile in profiles]


@router.get("/random", response_model=list[PublicProfileOut])
async def random_profiles(count: int = Query(default=3, ge=1, le=50)) -> list[PublicProfileOut]:
	try:
		profiles = await get_directory().random_approved(count)
	except AlumniError as exc:
		raise _map_error(exc) from None
	return [PublicProfileOut.from_domain(profile) for profile in profiles]


@router.get("/sectors", response_model=list[str])
async def list_sectors() -> list[str]:
	try:
		return await get_directory().all_sectors()
	except AlumniError as exc:
		raise _map_error(exc) from None


@router.get("/expertise", response_model=list[str])
async def list_expertise() -> list[str]:
	try:
		return await get_directory().all_expertise()
	except AlumniError as exc:
		raise _map_error(exc) from None


@router.get("/{uid}", response_model=PublicProfileOut)
async def get_directory_profile(uid: str) -> PublicProfileOut:
	try:
		profile = await get_directory().get_public(uid)
	except AlumniError as exc:
		raise _map_error(exc) from None
	return PublicProfileOut.from_domain(profile)
