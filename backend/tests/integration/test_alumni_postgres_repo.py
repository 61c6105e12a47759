"""Postgres repositories exercised against a mocked asyncpg pool."""

import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import asyncpg
import pytest

from cpsconnect.alumni.domain.models import DELETE_FIELD, AlumniProfile, AlumniStatus, ContactRequest, ContactStatus
from cpsconnect.alumni.domain.policy import AlreadyExists, Conflict, ProfileNotFound, StoreError, ValidationError
from cpsconnect.alumni.infra.postgres_repo import (
	SCHEMA_STATEMENTS,
	PostgresContactRepository,
	PostgresProfileRepository,
	ensure_schema,
)

NOW = datetime(2024, 2, 1, tzinfo=timezone.utc)


@pytest.fixture
def mock_pool():
	pool = MagicMock()
	conn = AsyncMock()
	pool.acquire.return_value.__aenter__ = AsyncMock(return_value=conn)
	pool.acquire.return_value.__aexit__ = AsyncMock(return_value=None)
	return pool, conn


def _row(doc: dict, version: int = 1) -> dict:
	return {"doc": json.dumps(doc), "version": version}


@pytest.mark.asyncio
async def test_get_decodes_document(mock_pool) -> None:
	pool, conn = mock_pool
	conn.fetchrow.return_value = _row({"uid": "u1", "name": "Awa", "email": "a@x.org", "yearPromo": 2020, "status": "approved"}, 3)
	profile = await PostgresProfileRepository(pool).get("u1")
	assert profile.status is AlumniStatus.APPROVED
	assert profile.version == 3
	assert conn.fetchrow.await_args.args[1] == "u1"


@pytest.mark.asyncio
async def test_insert_conflict_raises_already_exists(mock_pool) -> None:
	pool, conn = mock_pool
	conn.fetchrow.return_value = None
	profile = AlumniProfile(uid="u1", name="Awa", email="a@x.org", year_promo=2020, date_created=NOW)
	with pytest.raises(AlreadyExists):
		await PostgresProfileRepository(pool).insert(profile)
	sql, uid, payload = conn.fetchrow.await_args.args
	assert "ON CONFLICT (uid) DO NOTHING" in sql
	assert json.loads(payload)["dateCreated"] == NOW.isoformat()


@pytest.mark.asyncio
async def test_update_splits_merge_and_removed_keys(mock_pool) -> None:
	pool, conn = mock_pool
	conn.fetchrow.return_value = _row({"uid": "u1", "name": "Awa", "email": "a@x.org", "yearPromo": 2020, "status": "approved"}, 5)
	updated = await PostgresProfileRepository(pool).update(
		"u1",
		{"status": AlumniStatus.APPROVED, "rejection_reason": DELETE_FIELD},
		expected_version=4,
	)
	assert updated.version == 5
	_, uid, merged, removed, expected = conn.fetchrow.await_args.args
	assert json.loads(merged) == {"status": "approved"}
	assert removed == ["rejectionReason"]
	assert expected == 4


@pytest.mark.asyncio
async def test_update_distinguishes_conflict_from_missing(mock_pool) -> None:
	pool, conn = mock_pool
	conn.fetchrow.return_value = None
	conn.fetchval.return_value = 1
	repo = PostgresProfileRepository(pool)
	with pytest.raises(Conflict) as exc:
		await repo.update("u1", {"bio": "x"}, expected_version=1)
	assert exc.value.reason == "version_conflict"
	conn.fetchval.return_value = None
	with pytest.raises(ProfileNotFound):
		await repo.update("u1", {"bio": "x"}, expected_version=1)


@pytest.mark.asyncio
async def test_query_builds_containment_and_whitelisted_order(mock_pool) -> None:
	pool, conn = mock_pool
	conn.fetch.return_value = []
	repo = PostgresProfileRepository(pool)
	await repo.query(where={"status": AlumniStatus.APPROVED}, order_by="date_created", descending=True, limit=10)
	sql, where, limit = conn.fetch.await_args.args
	assert "doc @> $1::jsonb" in sql
	assert "ORDER BY doc->>'dateCreated' DESC" in sql
	assert json.loads(where) == {"status": "approved"}
	assert limit == 10
	with pytest.raises(ValidationError):
		await repo.query(order_by="doc; DROP TABLE alumni_profiles")


@pytest.mark.asyncio
async def test_driver_errors_become_store_errors(mock_pool) -> None:
	pool, conn = mock_pool
	conn.fetchrow.side_effect = asyncpg.PostgresConnectionError("gone")
	with pytest.raises(StoreError):
		await PostgresProfileRepository(pool).get("u1")


@pytest.mark.asyncio
async def test_contact_status_update_requires_existing_row(mock_pool) -> None:
	pool, conn = mock_pool
	repo = PostgresContactRepository(pool)
	request = ContactRequest(
		id="c1",
		from_uid="s",
		from_name="S",
		from_email="s@x.org",
		to_uid="r",
		to_name="R",
		to_email="r@x.org",
		subject="Hi",
		message="Hello",
		status=ContactStatus.PENDING,
		date_created=NOW,
	)
	await repo.create(request)
	assert conn.execute.await_args.args[10] == "pending"
	conn.fetchval.return_value = "c1"
	await repo.set_status("c1", ContactStatus.FAILED)
	assert conn.fetchval.await_args.args[2] == "failed"
	conn.fetchval.return_value = None
	with pytest.raises(ProfileNotFound):
		await repo.set_status("missing", ContactStatus.SENT)


@pytest.mark.asyncio
async def test_ensure_schema_runs_every_statement(mock_pool) -> None:
	pool, conn = mock_pool
	conn.transaction = MagicMock()
	conn.transaction.return_value.__aenter__ = AsyncMock(return_value=None)
	conn.transaction.return_value.__aexit__ = AsyncMock(return_value=None)
	await ensure_schema(pool)
	assert conn.execute.await_count == len(SCHEMA_STATEMENTS)
