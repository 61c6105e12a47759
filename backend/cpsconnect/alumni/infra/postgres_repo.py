"""PostgreSQL-backed repositories for the alumni directory.

Profiles live in a JSONB document column next to a version counter that every
write increments; the version backs the compare-and-swap used by lifecycle
transitions.
"""

from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Mapping, Optional

import asyncpg

from cpsconnect.alumni.domain.models import (
	DELETE_FIELD,
	AlumniProfile,
	ContactRequest,
	ContactStatus,
	Recommendation,
	document_key,
	encode_changes,
)
from cpsconnect.alumni.domain.policy import AlreadyExists, Conflict, ProfileNotFound, StoreError
from cpsconnect.alumni.domain.repository import (
	ContactRepository,
	ProfileRepository,
	RecommendationRepository,
	check_sort_field,
)
from cpsconnect.infra.postgres import get_pool

LOGGER = logging.getLogger(__name__)

SCHEMA_STATEMENTS = (
	"""
	CREATE TABLE IF NOT EXISTS alumni_profiles (
		uid TEXT PRIMARY KEY,
		doc JSONB NOT NULL,
		version INTEGER NOT NULL DEFAULT 1
	)
	""",
	"CREATE INDEX IF NOT EXISTS alumni_profiles_status_idx ON alumni_profiles ((doc->>'status'))",
	"CREATE INDEX IF NOT EXISTS alumni_profiles_email_idx ON alumni_profiles ((doc->>'email'))",
	"""
	CREATE TABLE IF NOT EXISTS alumni_contact_requests (
		id TEXT PRIMARY KEY,
		from_uid TEXT NOT NULL,
		from_name TEXT NOT NULL,
		from_email TEXT NOT NULL,
		to_uid TEXT NOT NULL,
		to_name TEXT NOT NULL,
		to_email TEXT NOT NULL,
		subject TEXT NOT NULL,
		message TEXT NOT NULL,
		status TEXT NOT NULL,
		created_at TIMESTAMPTZ NOT NULL
	)
	""",
	"""
	CREATE TABLE IF NOT EXISTS alumni_recommendations (
		id TEXT PRIMARY KEY,
		from_uid TEXT NOT NULL,
		from_name TEXT NOT NULL,
		to_uid TEXT NOT NULL,
		to_name TEXT NOT NULL,
		message TEXT NOT NULL,
		status TEXT NOT NULL,
		created_at TIMESTAMPTZ NOT NULL
	)
	""",
	"CREATE INDEX IF NOT EXISTS alumni_recommendations_to_idx ON alumni_recommendations (to_uid, created_at DESC)",
	"CREATE INDEX IF NOT EXISTS alumni_recommendations_from_idx ON alumni_recommendations (from_uid, created_at DESC)",
)


async def ensure_schema(pool: Optional[asyncpg.Pool] = None) -> None:
	pool = pool or await get_pool()
	async with pool.acquire() as conn:
		async with conn.transaction():
			for statement in SCHEMA_STATEMENTS:
				await conn.execute(statement)


def _load_doc(value: Any) -> Dict[str, Any]:
	if isinstance(value, str):
		return json.loads(value)
	return dict(value or {})


def _row_to_profile(row: asyncpg.Record) -> AlumniProfile:
	return AlumniProfile.from_document(_load_doc(row["doc"]), version=int(row["version"]))


class _PostgresRepository:
	def __init__(self, pool: Optional[asyncpg.Pool] = None) -> None:
		self._pool = pool

	@asynccontextmanager
	async def _connection(self) -> AsyncIterator[asyncpg.Connection]:
		try:
			pool = self._pool or await get_pool()
			async with pool.acquire() as conn:
				yield conn
		except asyncpg.UniqueViolationError:
			raise AlreadyExists() from None
		except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as exc:
			LOGGER.warning("alumni.store_error", extra={"error": type(exc).__name__})
			raise StoreError() from exc


class PostgresProfileRepository(_PostgresRepository, ProfileRepository):
	async def get(self, uid: str) -> Optional[AlumniProfile]:
		async with self._connection() as conn:
			row = await conn.fetchrow("SELECT doc, version FROM alumni_profiles WHERE uid = $1", uid)
		return _row_to_profile(row) if row else None

	async def insert(self, profile: AlumniProfile) -> AlumniProfile:
		async with self._connection() as conn:
			row = await conn.fetchrow(
				"""
				INSERT INTO alumni_profiles (uid, doc, version)
				VALUES ($1, $2::jsonb, 1)
				ON CONFLICT (uid) DO NOTHING
				RETURNING doc, version
				""",
				profile.uid,
				json.dumps(profile.to_document()),
			)
		if row is None:
			raise AlreadyExists()
		return _row_to_profile(row)

	async def update(
		self,
		uid: str,
		changes: Mapping[str, Any],
		*,
		expected_version: Optional[int] = None,
	) -> AlumniProfile:
		encoded = encode_changes(changes)
		merged = {key: value for key, value in encoded.items() if value is not DELETE_FIELD}
		removed = [key for key, value in encoded.items() if value is DELETE_FIELD]
		exists = None
		async with self._connection() as conn:
			row = await conn.fetchrow(
				"""
				UPDATE alumni_profiles
				SET doc = (doc || $2::jsonb) - $3::text[], version = version + 1
				WHERE uid = $1 AND ($4::int IS NULL OR version = $4)
				RETURNING doc, version
				""",
				uid,
				json.dumps(merged),
				removed,
				expected_version,
			)
			if row is None:
				exists = await conn.fetchval("SELECT 1 FROM alumni_profiles WHERE uid = $1", uid)
		if row is None:
			if exists:
				raise Conflict("version_conflict")
			raise ProfileNotFound()
		return _row_to_profile(row)

	async def delete(self, uid: str) -> bool:
		async with self._connection() as conn:
			deleted = await conn.fetchval("DELETE FROM alumni_profiles WHERE uid = $1 RETURNING uid", uid)
		return deleted is not None

	async def query(
		self,
		*,
		where: Optional[Mapping[str, Any]] = None,
		order_by: Optional[str] = None,
		descending: bool = False,
		limit: Optional[int] = None,
	) -> List[AlumniProfile]:
		check_sort_field(order_by)
		sql = "SELECT doc, version FROM alumni_profiles WHERE doc @> $1::jsonb"
		if order_by is not None:
			# Whitelisted by check_sort_field, safe to inline.
			key = document_key(order_by)
			sort_expr = f"(doc->>'{key}')::int" if order_by == "year_promo" else f"doc->>'{key}'"
			sql += f" AND doc ? '{key}' ORDER BY {sort_expr} {'DESC' if descending else 'ASC'}"
		sql += " LIMIT $2"
		async with self._connection() as conn:
			rows = await conn.fetch(sql, json.dumps(encode_changes(where or {})), limit)
		return [_row_to_profile(row) for row in rows]

	async def increment(self, uid: str, attribute: str, amount: int = 1) -> None:
		key = document_key(attribute)
		async with self._connection() as conn:
			updated = await conn.fetchval(
				"""
				UPDATE alumni_profiles
				SET doc = jsonb_set(doc, ARRAY[$2::text], to_jsonb(COALESCE((doc->>$2)::int, 0) + $3)),
					version = version + 1
				WHERE uid = $1
				RETURNING uid
				""",
				uid,
				key,
				amount,
			)
		if updated is None:
			raise ProfileNotFound()


def _row_to_contact(row: asyncpg.Record) -> ContactRequest:
	return ContactRequest(
		id=str(row["id"]),
		from_uid=row["from_uid"],
		from_name=row["from_name"],
		from_email=row["from_email"],
		to_uid=row["to_uid"],
		to_name=row["to_name"],
		to_email=row["to_email"],
		subject=row["subject"],
		message=row["message"],
		status=ContactStatus(row["status"]),
		date_created=row["created_at"],
	)


class PostgresContactRepository(_PostgresRepository, ContactRepository):
	async def create(self, request: ContactRequest) -> None:
		async with self._connection() as conn:
			await conn.execute(
				"""
				INSERT INTO alumni_contact_requests
					(id, from_uid, from_name, from_email, to_uid, to_name, to_email, subject, message, status, created_at)
				VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11)
				""",
				request.id,
				request.from_uid,
				request.from_name,
				request.from_email,
				request.to_uid,
				request.to_name,
				request.to_email,
				request.subject,
				request.message,
				request.status.value,
				request.date_created,
			)

	async def set_status(self, request_id: str, status: ContactStatus) -> None:
		async with self._connection() as conn:
			updated = await conn.fetchval(
				"UPDATE alumni_contact_requests SET status = $2 WHERE id = $1 RETURNING id",
				request_id,
				status.value,
			)
		if updated is None:
			raise ProfileNotFound("contact_request_not_found")

	async def get(self, request_id: str) -> Optional[ContactRequest]:
		async with self._connection() as conn:
			row = await conn.fetchrow("SELECT * FROM alumni_contact_requests WHERE id = $1", request_id)
		return _row_to_contact(row) if row else None


def _row_to_recommendation(row: asyncpg.Record) -> Recommendation:
	return Recommendation(
		id=str(row["id"]),
		from_uid=row["from_uid"],
		from_name=row["from_name"],
		to_uid=row["to_uid"],
		to_name=row["to_name"],
		message=row["message"],
		date=row["created_at"],
		status=row["status"],
	)


class PostgresRecommendationRepository(_PostgresRepository, RecommendationRepository):
	async def create(self, recommendation: Recommendation) -> None:
		async with self._connection() as conn:
			await conn.execute(
				"""
				INSERT INTO alumni_recommendations (id, from_uid, from_name, to_uid, to_name, message, status, created_at)
				VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
				""",
				recommendation.id,
				recommendation.from_uid,
				recommendation.from_name,
				recommendation.to_uid,
				recommendation.to_name,
				recommendation.message,
				recommendation.status,
				recommendation.date,
			)

	async def list_received(self, uid: str) -> List[Recommendation]:
		async with self._connection() as conn:
			rows = await conn.fetch(
				"SELECT * FROM alumni_recommendations WHERE to_uid = $1 ORDER BY created_at DESC",
				uid,
			)
		return [_row_to_recommendation(row) for row in rows]

	async def list_sent(self, uid: str) -> List[Recommendation]:
		async with self._connection() as conn:
			rows = await conn.fetch(
				"SELECT * FROM alumni_recommendations WHERE from_uid = $1 ORDER BY created_at DESC",
				uid,
			)
		return [_row_to_recommendation(row) for row in rows]
