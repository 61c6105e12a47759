"""Pure in-memory filtering for the alumni directory.

The profile store cannot do full-text or multi-field queries, so the directory
fetches a bounded set of approved profiles and narrows it here.
"""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from cpsconnect.alumni.domain.models import AlumniProfile
from cpsconnect.alumni.domain.policy import YEAR_PROMO_MAX, YEAR_PROMO_MIN

_LIGATURES = str.maketrans({"œ": "oe", "Œ": "OE", "æ": "ae", "Æ": "AE"})


@dataclass(slots=True)
class DirectoryFilters:
	query: Optional[str] = None
	sectors: Sequence[str] = ()
	expertise: Sequence[str] = ()
	seeking: Sequence[str] = ()
	offering: Sequence[str] = ()
	soft_skills: Sequence[str] = ()
	languages: Sequence[str] = ()
	year_promos: Sequence[int] = ()
	year_promo_min: Optional[int] = None
	year_promo_max: Optional[int] = None
	city: Optional[str] = None
	country: Optional[str] = None
	availability: Optional[str] = None

	def year_set(self) -> Optional[Set[int]]:
		"""Explicit years to match; a closed min/max range is expanded into the set.

		The range is clamped to the valid promotion years before expansion.
		"""
		years = {int(year) for year in self.year_promos}
		if self.year_promo_min is not None and self.year_promo_max is not None:
			low, high = sorted((int(self.year_promo_min), int(self.year_promo_max)))
			low, high = max(low, YEAR_PROMO_MIN), min(high, YEAR_PROMO_MAX)
			if low <= high:
				years.update(range(low, high + 1))
			elif not years:
				return set()
		return years or None


def _fold(value: str) -> str:
	decomposed = unicodedata.normalize("NFD", value.translate(_LIGATURES))
	return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold()


def name_sort_key(name: str) -> Tuple[str, str, str]:
	"""French-style collation: accents and case only break ties."""
	return (_fold(name), name.casefold(), name)


def split_places(value: Optional[str]) -> List[str]:
	if not value:
		return []
	return [part.strip().lower() for part in value.split(",") if part.strip()]


def _intersects(values: Iterable[str], wanted: Sequence[str]) -> bool:
	wanted_set = set(wanted)
	return any(value in wanted_set for value in values)


def _searchable_text(profile: AlumniProfile) -> List[str]:
	texts: List[Optional[str]] = [
		profile.name,
		profile.email,
		profile.bio,
		profile.headline,
		profile.position,
		profile.company,
		profile.company_description,
		profile.company_website,
		profile.personal_website,
		profile.availability,
	]
	texts.extend(split_places(profile.city))
	texts.extend(split_places(profile.country))
	for values in (
		profile.sectors,
		profile.expertise,
		profile.seeking,
		profile.offering,
		profile.soft_skills,
		profile.language_names,
	):
		texts.extend(values)
	return [text.lower() for text in texts if text]


_UNSET = object()


def matches(profile: AlumniProfile, filters: DirectoryFilters, years: object = _UNSET) -> bool:
	"""`years` is the precomputed `filters.year_set()`; `search` passes it once for all profiles."""
	query = (filters.query or "").strip().lower()
	if query and not any(query in text for text in _searchable_text(profile)):
		return False
	for values, wanted in (
		(profile.sectors, filters.sectors),
		(profile.expertise, filters.expertise),
		(profile.seeking, filters.seeking),
		(profile.offering, filters.offering),
		(profile.soft_skills, filters.soft_skills),
		(profile.language_names, filters.languages),
	):
		if wanted and not _intersects(values, wanted):
			return False
	if years is _UNSET:
		years = filters.year_set()
	if years is not None and profile.year_promo not in years:
		return False
	if filters.year_promo_max is None and filters.year_promo_min is not None:
		if profile.year_promo < filters.year_promo_min:
			return False
	if filters.year_promo_min is None and filters.year_promo_max is not None:
		if profile.year_promo > filters.year_promo_max:
			return False
	for place, wanted in ((profile.city, filters.city), (profile.country, filters.country)):
		wanted_places = split_places(wanted)
		if wanted_places and not _intersects(split_places(place), wanted_places):
			return False
	if filters.availability and profile.availability != filters.availability:
		return False
	return True


def search(profiles: Iterable[AlumniProfile], filters: DirectoryFilters) -> List[AlumniProfile]:
	"""AND-combine every filter, then order by name whatever the input order."""
	years = filters.year_set()
	found = [profile for profile in profiles if matches(profile, filters, years)]
	found.sort(key=lambda profile: name_sort_key(profile.name))
	return found
