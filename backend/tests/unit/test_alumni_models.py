from datetime import datetime, timezone

import pytest

from cpsconnect.alumni.domain.models import (
	DELETE_FIELD,
	AlumniProfile,
	AlumniStatus,
	document_key,
	encode_changes,
)
from cpsconnect.alumni.domain.policy import ValidationError, normalise_email, validate_year_promo
from cpsconnect.alumni.domain.repository import InMemoryProfileRepository


def test_document_keys_are_camel_case() -> None:
	assert document_key("year_promo") == "yearPromo"
	assert document_key("date_validation") == "dateValidation"
	assert document_key("name") == "name"


def test_document_leaves_out_absent_values() -> None:
	created = datetime(2023, 6, 1, 8, 0, tzinfo=timezone.utc)
	profile = AlumniProfile(uid="u1", name="Awa", email="awa@example.org", year_promo=2020, date_created=created)
	doc = profile.to_document()
	assert doc["status"] == "draft"
	assert doc["dateCreated"] == created.isoformat()
	assert doc["yearPromo"] == 2020
	assert "rejectionReason" not in doc
	assert "version" not in doc

	loaded = AlumniProfile.from_document(doc, version=4)
	assert loaded.date_created == created
	assert loaded.status is AlumniStatus.DRAFT
	assert loaded.version == 4


def test_encode_changes_keeps_delete_markers() -> None:
	encoded = encode_changes({"rejection_reason": DELETE_FIELD, "status": AlumniStatus.APPROVED})
	assert encoded == {"rejectionReason": DELETE_FIELD, "status": "approved"}


def test_language_names() -> None:
	profile = AlumniProfile(uid="u1", name="Awa", email="a@b.c", year_promo=2020, languages=[{"name": "Wolof"}, {"level": "B2"}])
	assert profile.language_names == ["Wolof"]


@pytest.mark.parametrize(
	"value, reason",
	[(None, "year_promo_required"), ("abc", "year_promo_invalid"), (1900, "year_promo_out_of_range")],
)
def test_year_promo_validation(value, reason) -> None:
	with pytest.raises(ValidationError) as exc:
		validate_year_promo(value)
	assert exc.value.reason == reason
	assert validate_year_promo("2022") == 2022


def test_email_normalisation() -> None:
	assert normalise_email("  Awa@Example.ORG ") == "awa@example.org"
	with pytest.raises(ValidationError):
		normalise_email("not-an-email")


@pytest.mark.asyncio
async def test_in_memory_query_filters_sorts_and_limits() -> None:
	repo = InMemoryProfileRepository()
	for uid, name, year in (("a", "Coumba", 2019), ("b", "Abdou", 2021), ("c", "Binta", 2020)):
		await repo.insert(AlumniProfile(uid=uid, name=name, email=f"{uid}@x.org", year_promo=year, status=AlumniStatus.APPROVED))
	await repo.insert(AlumniProfile(uid="d", name="Aaron", email="d@x.org", year_promo=2022))

	by_year = await repo.query(where={"status": AlumniStatus.APPROVED}, order_by="year_promo", descending=True, limit=2)
	assert [profile.uid for profile in by_year] == ["b", "c"]
	assert [profile.uid for profile in await repo.query(order_by="name")] == ["d", "b", "c", "a"]
	with pytest.raises(ValidationError):
		await repo.query(order_by="email")


@pytest.mark.asyncio
async def test_in_memory_update_bumps_version_and_removes_fields() -> None:
	repo = InMemoryProfileRepository()
	await repo.insert(AlumniProfile(uid="a", name="Awa", email="a@x.org", year_promo=2020, headline="Dev"))
	updated = await repo.update("a", {"headline": DELETE_FIELD, "bio": "Salut"}, expected_version=1)
	assert updated.version == 2
	assert updated.headline is None
	assert updated.bio == "Salut"
	await repo.increment("a", "endorsement_count")
	assert (await repo.get("a")).endorsement_count == 1
