"""Moderation workflow: authorisation in front of the lifecycle engine."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, List, Mapping, Optional, Sequence

from cpsconnect.alumni.domain import importer
from cpsconnect.alumni.domain.lifecycle import ProfileLifecycle
from cpsconnect.alumni.domain.models import AlumniProfile, AlumniStatus
from cpsconnect.alumni.domain.policy import REASON_MAX_LEN, Conflict, PermissionDenied, require_text
from cpsconnect.alumni.domain.rbac import Actor
from cpsconnect.alumni.domain.repository import ProfileRepository
from cpsconnect.alumni.domain.stats import AlumniStats, compute_stats
from cpsconnect.infra.redis import redis_client

LOGGER = logging.getLogger(__name__)

# Newest first; rejected profiles surface by their last edit.
_QUEUE_ORDER = {
	AlumniStatus.DRAFT: "date_created",
	AlumniStatus.PENDING: "date_created",
	AlumniStatus.APPROVED: "date_validation",
	AlumniStatus.REJECTED: "date_updated",
}


def _lock_key(uid: str) -> str:
	return f"alumni:review:lock:{uid}"


def _now() -> datetime:
	return datetime.now(timezone.utc)


def _require_admin(actor: Actor) -> None:
	if not actor.can_moderate:
		raise PermissionDenied("admin_required")


class ModerationService:
	def __init__(
		self,
		lifecycle: ProfileLifecycle,
		repository: ProfileRepository,
		*,
		lock_ttl_seconds: int = 30,
		clock: Callable[[], datetime] = _now,
	) -> None:
		self._lifecycle = lifecycle
		self._repository = repository
		self._lock_ttl = lock_ttl_seconds
		self._clock = clock

	async def _acquire_lock(self, uid: str, actor: Actor) -> None:
		ok = await redis_client.set(_lock_key(uid), actor.id, nx=True, ex=self._lock_ttl)
		if not ok:
			raise Conflict("profile_locked")

	async def _release_lock(self, uid: str) -> None:
		await redis_client.delete(_lock_key(uid))

	async def approve(self, actor: Actor, uid: str) -> AlumniProfile:
		_require_admin(actor)
		await self._acquire_lock(uid, actor)
		try:
			return await self._lifecycle.approve(uid, actor.id)
		finally:
			await self._release_lock(uid)

	async def reject(self, actor: Actor, uid: str, reason: Optional[str]) -> AlumniProfile:
		_require_admin(actor)
		reason = require_text(reason, "reason_required", max_len=REASON_MAX_LEN)
		await self._acquire_lock(uid, actor)
		try:
			return await self._lifecycle.reject(uid, actor.id, reason)
		finally:
			await self._release_lock(uid)

	async def delete(self, actor: Actor, uid: str) -> None:
		"""Owners may always delete their own profile; anyone else needs superadmin."""
		if actor.id != uid and not actor.is_superadmin:
			raise PermissionDenied("superadmin_required")
		await self._lifecycle.delete(uid)
		LOGGER.info("alumni.profile_removed", extra={"uid": uid, "actor_id": actor.id, "self": actor.id == uid})

	async def queue(self, actor: Actor, status: AlumniStatus = AlumniStatus.PENDING, *, limit: Optional[int] = None) -> List[AlumniProfile]:
		_require_admin(actor)
		return await self._repository.query(
			where={"status": status},
			order_by=_QUEUE_ORDER[status],
			descending=True,
			limit=limit,
		)

	async def stats(self, actor: Actor) -> AlumniStats:
		_require_admin(actor)
		return compute_stats(await self._repository.query())

	async def import_profiles(self, actor: Actor, rows: Sequence[Mapping[str, Any]], *, source: str = "bulk_import") -> importer.ImportResult:
		_require_admin(actor)
		return await importer.import_profiles(
			self._repository,
			rows,
			admin_id=actor.id,
			now=self._clock(),
			source=source,
		)
