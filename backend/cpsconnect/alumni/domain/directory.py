"""Read side of the alumni directory: only approved profiles are ever returned."""

from __future__ import annotations

import logging
import random
import time
from enum import Enum
from typing import List, Optional

from cpsconnect.alumni.domain.filters import DirectoryFilters, search
from cpsconnect.alumni.domain.models import AlumniProfile, AlumniStatus
from cpsconnect.alumni.domain.policy import ProfileNotFound
from cpsconnect.alumni.domain.repository import ProfileRepository
from cpsconnect.obs import metrics as obs_metrics

LOGGER = logging.getLogger(__name__)

_APPROVED = {"status": AlumniStatus.APPROVED}


class DirectorySort(str, Enum):
	NAME = "name"
	DATE_CREATED = "dateCreated"
	RELEVANCE = "relevance"


class DirectoryService:
	def __init__(
		self,
		repository: ProfileRepository,
		*,
		fetch_limit: int = 1000,
		default_limit: int = 50,
		rng: Optional[random.Random] = None,
	) -> None:
		self._repository = repository
		self._fetch_limit = fetch_limit
		self._default_limit = default_limit
		self._rng = rng or random.Random()

	async def list_approved(self, sort: DirectorySort = DirectorySort.DATE_CREATED, limit: Optional[int] = None) -> List[AlumniProfile]:
		"""Approved profiles, by name ascending or newest first.

		Not snapshot isolated: a profile moderated mid-query may or may not appear.
		"""
		start = time.perf_counter()
		if sort is DirectorySort.NAME:
			order_by, descending = "name", False
		else:
			order_by, descending = "date_created", True
		profiles = await self._repository.query(
			where=_APPROVED,
			order_by=order_by,
			descending=descending,
			limit=limit or self._default_limit,
		)
		obs_metrics.inc_directory_query("list")
		obs_metrics.observe_directory_latency("list", time.perf_counter() - start)
		return profiles

	async def search_directory(
		self,
		filters: DirectoryFilters,
		*,
		sort: DirectorySort = DirectorySort.RELEVANCE,
		limit: Optional[int] = None,
	) -> List[AlumniProfile]:
		start = time.perf_counter()
		candidates = await self.list_approved(sort, self._fetch_limit)
		if len(candidates) >= self._fetch_limit:
			# Profiles past the ceiling are invisible to search until the store gains a search index.
			obs_metrics.inc_directory_ceiling()
			LOGGER.warning("alumni.directory_fetch_ceiling_reached", extra={"fetch_limit": self._fetch_limit})
		results = search(candidates, filters)[: limit or self._default_limit]
		obs_metrics.inc_directory_query("search")
		obs_metrics.observe_directory_latency("search", time.perf_counter() - start)
		return results

	async def latest_approved(self, count: int = 3) -> List[AlumniProfile]:
		obs_metrics.inc_directory_query("latest")
		return await self._repository.query(where=_APPROVED, order_by="date_validation", descending=True, limit=count)

	async def random_approved(self, count: int = 3) -> List[AlumniProfile]:
		profiles = await self.list_approved(DirectorySort.DATE_CREATED, self._fetch_limit)
		obs_metrics.inc_directory_query("random")
		return self._rng.sample(profiles, min(count, len(profiles)))

	async def all_sectors(self) -> List[str]:
		profiles = await self._repository.query(where=_APPROVED)
		return sorted({sector for profile in profiles for sector in profile.sectors})

	async def all_expertise(self) -> List[str]:
		profiles = await self._repository.query(where=_APPROVED)
		return sorted({item for profile in profiles for item in profile.expertise})

	async def has_profile(self, uid: str) -> bool:
		return await self._repository.get(uid) is not None

	async def get_public(self, uid: str) -> AlumniProfile:
		profile = await self._repository.get(uid)
		if profile is None or profile.status is not AlumniStatus.APPROVED:
			raise ProfileNotFound()
		return profile
