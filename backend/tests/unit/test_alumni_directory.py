import random
import time
from datetime import datetime, timedelta, timezone

import pytest

from cpsconnect.alumni.domain.directory import DirectoryService, DirectorySort
from cpsconnect.alumni.domain.filters import DirectoryFilters, name_sort_key, search, split_places
from cpsconnect.alumni.domain.models import AlumniProfile, AlumniStatus
from cpsconnect.alumni.domain.policy import YEAR_PROMO_MAX, YEAR_PROMO_MIN, ProfileNotFound
from cpsconnect.alumni.domain.repository import InMemoryProfileRepository
from cpsconnect.obs import metrics as obs_metrics

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_profile(uid: str, name: str = "Alumni", **overrides) -> AlumniProfile:
	values = {"email": f"{uid}@example.org", "year_promo": 2022, "status": AlumniStatus.APPROVED}
	values.update(overrides)
	return AlumniProfile(uid=uid, name=name, **values)


async def seed(repo: InMemoryProfileRepository, *profiles: AlumniProfile) -> None:
	for offset, profile in enumerate(profiles):
		if profile.date_created is None:
			profile.date_created = BASE_TIME + timedelta(days=offset)
		await repo.insert(profile)


def test_filter_conjunction_returns_only_matching_profile() -> None:
	profiles = [
		make_profile("a", "A", sectors=["Tech"], year_promo=2022),
		make_profile("b", "B", sectors=["Finance"], year_promo=2022),
		make_profile("c", "C", sectors=["Tech"], year_promo=2023),
	]
	found = search(profiles, DirectoryFilters(sectors=["Tech"], year_promos=[2022]))
	assert [profile.uid for profile in found] == ["a"]


@pytest.mark.parametrize("filters", [DirectoryFilters(), DirectoryFilters(query="o"), DirectoryFilters(year_promos=[2022])])
def test_search_output_is_sorted_by_name(filters) -> None:
	profiles = [make_profile("z", "Zoé"), make_profile("a", "Amadou")]
	assert [profile.name for profile in search(profiles, filters)] == ["Amadou", "Zoé"]
	assert [profile.name for profile in search(list(reversed(profiles)), filters)] == ["Amadou", "Zoé"]


def test_name_collation_ignores_accents_and_case() -> None:
	names = ["émile", "Eric", "Zoé", "edouard", "Élodie"]
	assert sorted(names, key=name_sort_key) == ["edouard", "Élodie", "émile", "Eric", "Zoé"]


def test_name_collation_expands_ligatures() -> None:
	names = ["Zoé", "Œdipe", "Oumar", "Odile", "Ælia", "Adama"]
	assert sorted(names, key=name_sort_key) == ["Adama", "Ælia", "Odile", "Œdipe", "Oumar", "Zoé"]


def test_text_query_covers_profile_fields() -> None:
	profile = make_profile(
		"u1",
		"Awa",
		bio="Passionnée de robotique",
		city="Paris, Lyon",
		languages=[{"name": "Wolof", "level": "native"}],
		company_website="https://acme.example",
		interests=["Jazz"],
	)
	for query in ("ROBOTIQUE", "lyon", "wolof", "acme", "u1@example"):
		assert search([profile], DirectoryFilters(query=query)) == [profile]
	for query in ("berlin", "jazz"):
		assert search([profile], DirectoryFilters(query=query)) == []


def test_list_filters_match_on_intersection() -> None:
	profile = make_profile(
		"u1",
		expertise=["Python", "SQL"],
		seeking=["mentor"],
		offering=["conseil"],
		soft_skills=["leadership"],
		languages=[{"name": "Anglais"}],
	)
	assert search([profile], DirectoryFilters(expertise=["Go", "SQL"])) == [profile]
	assert search([profile], DirectoryFilters(seeking=["mentor"], offering=["conseil"])) == [profile]
	assert search([profile], DirectoryFilters(languages=["Anglais"], soft_skills=["leadership"])) == [profile]
	assert search([profile], DirectoryFilters(languages=["Espagnol"])) == []


def test_year_range_and_open_bounds() -> None:
	profiles = [make_profile(str(year), f"P{year}", year_promo=year) for year in (2018, 2020, 2022, 2024)]

	def years(filters):
		return [profile.year_promo for profile in search(profiles, filters)]

	assert years(DirectoryFilters(year_promo_min=2019, year_promo_max=2022)) == [2020, 2022]
	assert years(DirectoryFilters(year_promo_min=2022)) == [2022, 2024]
	assert years(DirectoryFilters(year_promo_max=2020)) == [2018, 2020]
	assert years(DirectoryFilters(year_promos=[2018], year_promo_min=2024, year_promo_max=2024)) == [2018, 2024]


def test_huge_year_range_is_clamped_to_valid_years() -> None:
	filters = DirectoryFilters(year_promo_min=0, year_promo_max=2_000_000_000)
	assert filters.year_set() == set(range(YEAR_PROMO_MIN, YEAR_PROMO_MAX + 1))
	assert DirectoryFilters(year_promo_min=-10, year_promo_max=5).year_set() == set()

	profiles = [make_profile(str(index), f"P{index}", year_promo=2000 + index) for index in range(20)]
	started = time.perf_counter()
	found = search(profiles, filters)
	assert time.perf_counter() - started < 0.5
	assert len(found) == 20
	assert search(profiles, DirectoryFilters(year_promo_min=-10, year_promo_max=5)) == []


def test_places_are_comma_split_and_case_insensitive() -> None:
	profile = make_profile("u1", city="Dakar, Paris", country="Sénégal")
	assert split_places(" Dakar ,Paris,, ") == ["dakar", "paris"]
	assert search([profile], DirectoryFilters(city="paris")) == [profile]
	assert search([profile], DirectoryFilters(city="Lyon, DAKAR")) == [profile]
	assert search([profile], DirectoryFilters(country="France")) == []


def test_availability_is_exact() -> None:
	profile = make_profile("u1", availability="freelance")
	assert search([profile], DirectoryFilters(availability="freelance")) == [profile]
	assert search([profile], DirectoryFilters(availability="Freelance")) == []


@pytest.mark.asyncio
async def test_list_approved_shows_only_approved_profiles() -> None:
	repo = InMemoryProfileRepository()
	await seed(
		repo,
		make_profile("draft", status=AlumniStatus.DRAFT),
		make_profile("pending", status=AlumniStatus.PENDING),
		make_profile("ok-1", "Binta"),
		make_profile("rejected", status=AlumniStatus.REJECTED),
		make_profile("ok-2", "Aïcha"),
	)
	directory = DirectoryService(repo)
	newest = await directory.list_approved(DirectorySort.DATE_CREATED, 10)
	assert [profile.uid for profile in newest] == ["ok-2", "ok-1"]
	by_name = await directory.list_approved(DirectorySort.NAME, 10)
	assert {profile.uid for profile in by_name} == {"ok-1", "ok-2"}

	await repo.update("ok-1", {"status": AlumniStatus.REJECTED})
	await repo.update("pending", {"status": AlumniStatus.APPROVED})
	current = await directory.list_approved(DirectorySort.RELEVANCE, 10)
	assert {profile.uid for profile in current} == {"ok-2", "pending"}


@pytest.mark.asyncio
async def test_search_directory_logs_when_ceiling_reached(caplog) -> None:
	repo = InMemoryProfileRepository()
	await seed(repo, *(make_profile(f"u{index}", f"Name {index}") for index in range(5)))
	directory = DirectoryService(repo, fetch_limit=3)
	before = obs_metrics.DIRECTORY_CEILING_HITS._value.get()
	with caplog.at_level("WARNING"):
		results = await directory.search_directory(DirectoryFilters(query="name"))
	assert len(results) == 3
	assert "alumni.directory_fetch_ceiling_reached" in caplog.text
	assert obs_metrics.DIRECTORY_CEILING_HITS._value.get() == before + 1


@pytest.mark.asyncio
async def test_search_directory_applies_limit_after_sorting() -> None:
	repo = InMemoryProfileRepository()
	await seed(repo, make_profile("z", "Zoé"), make_profile("m", "Moussa"), make_profile("a", "Amadou"))
	directory = DirectoryService(repo)
	results = await directory.search_directory(DirectoryFilters(year_promos=[2022]), limit=2)
	assert [profile.name for profile in results] == ["Amadou", "Moussa"]


@pytest.mark.asyncio
async def test_latest_random_and_facets() -> None:
	repo = InMemoryProfileRepository()
	await seed(
		repo,
		make_profile("old", sectors=["Tech"], expertise=["Python"], date_validation=BASE_TIME),
		make_profile("new", sectors=["Finance", "Tech"], expertise=["Audit"], date_validation=BASE_TIME + timedelta(days=3)),
		make_profile("hidden", status=AlumniStatus.PENDING, sectors=["Santé"]),
	)
	directory = DirectoryService(repo, rng=random.Random(7))
	assert [profile.uid for profile in await directory.latest_approved(1)] == ["new"]
	assert await directory.all_sectors() == ["Finance", "Tech"]
	assert await directory.all_expertise() == ["Audit", "Python"]
	sample = await directory.random_approved(5)
	assert sorted(profile.uid for profile in sample) == ["new", "old"]
	assert await directory.has_profile("hidden")
	assert not await directory.has_profile("nobody")


@pytest.mark.asyncio
async def test_get_public_hides_unapproved_profiles() -> None:
	repo = InMemoryProfileRepository()
	await seed(repo, make_profile("ok"), make_profile("pending", status=AlumniStatus.PENDING))
	directory = DirectoryService(repo)
	assert (await directory.get_public("ok")).uid == "ok"
	with pytest.raises(ProfileNotFound):
		await directory.get_public("pending")
	with pytest.raises(ProfileNotFound):
		await directory.get_public("missing")
