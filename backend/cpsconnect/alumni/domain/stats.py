"""Directory statistics for the admin dashboard."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable

from cpsconnect.alumni.domain.models import AlumniProfile, AlumniStatus


@dataclass(slots=True)
class AlumniStats:
	total_profiles: int = 0
	draft_profiles: int = 0
	pending_profiles: int = 0
	approved_profiles: int = 0
	rejected_profiles: int = 0
	profiles_by_year: Dict[int, int] = field(default_factory=dict)
	profiles_by_sector: Dict[str, int] = field(default_factory=dict)
	profiles_by_country: Dict[str, int] = field(default_factory=dict)


def compute_stats(profiles: Iterable[AlumniProfile]) -> AlumniStats:
	statuses: Counter[AlumniStatus] = Counter()
	years: Counter[int] = Counter()
	sectors: Counter[str] = Counter()
	countries: Counter[str] = Counter()
	total = 0
	for profile in profiles:
		total += 1
		statuses[profile.status] += 1
		if profile.year_promo:
			years[profile.year_promo] += 1
		sectors.update(profile.sectors)
		if profile.country:
			countries[profile.country] += 1
	return AlumniStats(
		total_profiles=total,
		draft_profiles=statuses[AlumniStatus.DRAFT],
		pending_profiles=statuses[AlumniStatus.PENDING],
		approved_profiles=statuses[AlumniStatus.APPROVED],
		rejected_profiles=statuses[AlumniStatus.REJECTED],
		profiles_by_year=dict(sorted(years.items())),
		profiles_by_sector=dict(sectors.most_common()),
		profiles_by_country=dict(countries.most_common()),
	)
