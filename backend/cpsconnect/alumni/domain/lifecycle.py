"""Alumni profile lifecycle: the status state machine and its side effects.

Every transition is one compare-and-swap write against the version read before
the decision. A ProfileTransitioned event is published only after that write
has committed, so a failed write never produces a notification.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, Mapping, Optional

from cpsconnect.alumni.domain.events import EventBus, ProfileTransitioned
from cpsconnect.alumni.domain.models import (
	DELETE_FIELD,
	LIFECYCLE_FIELDS,
	PROFILE_ATTRIBUTES,
	AlumniProfile,
	AlumniStatus,
)
from cpsconnect.alumni.domain.policy import (
	REASON_MAX_LEN,
	InvalidTransition,
	ProfileNotFound,
	ValidationError,
	normalise_email,
	require_text,
	validate_year_promo,
)
from cpsconnect.alumni.domain.repository import ProfileRepository
from cpsconnect.obs import metrics as obs_metrics

LOGGER = logging.getLogger(__name__)

# Maintained by dedicated operations, never through a partial update.
PROTECTED_FIELDS = LIFECYCLE_FIELDS | {"endorsement_count", "imported_from", "imported_at"}
_STRING_LIST_FIELDS = frozenset({"sectors", "expertise", "seeking", "offering", "soft_skills", "interests"})


class Action(str, Enum):
	SUBMIT = "submit"
	APPROVE = "approve"
	REJECT = "reject"


_TARGETS: Dict[Action, AlumniStatus] = {
	Action.SUBMIT: AlumniStatus.PENDING,
	Action.APPROVE: AlumniStatus.APPROVED,
	Action.REJECT: AlumniStatus.REJECTED,
}

_ALLOWED: Dict[AlumniStatus, FrozenSet[Action]] = {
	AlumniStatus.DRAFT: frozenset({Action.SUBMIT}),
	AlumniStatus.PENDING: frozenset({Action.APPROVE, Action.REJECT}),
	AlumniStatus.APPROVED: frozenset({Action.APPROVE, Action.REJECT}),
	AlumniStatus.REJECTED: frozenset({Action.APPROVE, Action.REJECT}),
}

# A status or action added without a transition rule must fail at import time.
_unmapped = (set(AlumniStatus) - set(_ALLOWED)) | (set(Action) - set(_TARGETS))
if _unmapped:
	raise RuntimeError(f"lifecycle rules missing for {sorted(str(item) for item in _unmapped)}")


def allowed_actions(status: AlumniStatus) -> FrozenSet[Action]:
	return _ALLOWED[status]


def next_status(current: AlumniStatus, action: Action) -> AlumniStatus:
	if action not in _ALLOWED[current]:
		obs_metrics.inc_alumni_transition_reject("invalid_transition")
		raise InvalidTransition(f"cannot_{action.value}_from_{current.value}")
	return _TARGETS[action]


def _now() -> datetime:
	return datetime.now(timezone.utc)


def clean_fields(fields: Mapping[str, Any]) -> Dict[str, Any]:
	"""Normalise caller supplied profile fields.

	None values are skipped. Empty strings and empty containers become
	DELETE_FIELD, except for the required identity fields which refuse them.
	"""
	cleaned: Dict[str, Any] = {}
	for key, value in fields.items():
		if key not in PROFILE_ATTRIBUTES:
			raise ValidationError("unknown_field")
		if key in PROTECTED_FIELDS:
			raise ValidationError("field_not_editable")
		if value is None:
			continue
		if key == "name":
			cleaned[key] = require_text(value, "name_required", max_len=120)
			continue
		if key == "email":
			cleaned[key] = normalise_email(value)
			continue
		if key == "year_promo":
			cleaned[key] = validate_year_promo(value)
			continue
		if isinstance(value, str):
			value = value.strip()
		elif key in _STRING_LIST_FIELDS:
			value = [str(item).strip() for item in value if str(item).strip()]
		if isinstance(value, (str, list, tuple, dict)) and len(value) == 0:
			cleaned[key] = DELETE_FIELD
		else:
			cleaned[key] = value
	return cleaned


class ProfileLifecycle:
	"""Owns every status change of an alumni profile."""

	def __init__(
		self,
		repository: ProfileRepository,
		bus: EventBus,
		*,
		clock: Callable[[], datetime] = _now,
	) -> None:
		self._repository = repository
		self._bus = bus
		self._clock = clock

	async def get(self, uid: str) -> AlumniProfile:
		profile = await self._repository.get(uid)
		if profile is None:
			raise ProfileNotFound()
		return profile

	async def create(self, uid: str, info: Mapping[str, Any], *, submit: bool = False) -> AlumniProfile:
		uid = require_text(uid, "uid_required")
		for required in ("name", "email", "year_promo"):
			if info.get(required) in (None, ""):
				raise ValidationError(f"{required}_required")
		values = {key: value for key, value in clean_fields(info).items() if value is not DELETE_FIELD}
		now = self._clock()
		status = AlumniStatus.PENDING if submit else AlumniStatus.DRAFT
		profile = AlumniProfile(
			uid=uid,
			status=status,
			date_created=now,
			date_updated=now,
			**values,
		)
		created = await self._repository.insert(profile)
		obs_metrics.inc_alumni_transition("create", status.value)
		LOGGER.info("alumni.profile_created", extra={"uid": uid, "status": status.value})
		await self._publish(created, "create", None, now)
		return created

	async def submit(self, uid: str) -> AlumniProfile:
		return await self._transition(uid, Action.SUBMIT)

	async def approve(self, uid: str, moderator_id: str) -> AlumniProfile:
		moderator_id = require_text(moderator_id, "moderator_required")
		return await self._transition(uid, Action.APPROVE, actor_id=moderator_id)

	async def reject(self, uid: str, moderator_id: str, reason: str) -> AlumniProfile:
		# Checked before touching the store.
		try:
			reason = require_text(reason, "reason_required", max_len=REASON_MAX_LEN)
		except ValidationError as exc:
			obs_metrics.inc_alumni_transition_reject(exc.reason)
			raise
		moderator_id = require_text(moderator_id, "moderator_required")
		return await self._transition(uid, Action.REJECT, actor_id=moderator_id, reason=reason)

	async def update(self, uid: str, fields: Mapping[str, Any]) -> AlumniProfile:
		changes = clean_fields(fields)
		profile = await self.get(uid)
		changes["date_updated"] = self._clock()
		updated = await self._repository.update(uid, changes, expected_version=profile.version)
		obs_metrics.inc_alumni_transition("update", updated.status.value)
		return updated

	async def delete(self, uid: str) -> None:
		profile = await self.get(uid)
		if not await self._repository.delete(uid):
			raise ProfileNotFound()
		obs_metrics.inc_alumni_transition("delete", profile.status.value)
		LOGGER.info("alumni.profile_deleted", extra={"uid": uid})
		await self._publish(profile, "delete", profile.status, self._clock())

	async def _transition(
		self,
		uid: str,
		action: Action,
		*,
		actor_id: Optional[str] = None,
		reason: Optional[str] = None,
	) -> AlumniProfile:
		profile = await self.get(uid)
		target = next_status(profile.status, action)
		now = self._clock()
		changes: Dict[str, Any] = {"status": target, "date_updated": now}
		if target is AlumniStatus.APPROVED:
			changes.update(date_validation=now, validated_by=actor_id, rejection_reason=DELETE_FIELD)
		elif target is AlumniStatus.REJECTED:
			changes.update(rejection_reason=reason, date_validation=DELETE_FIELD, validated_by=DELETE_FIELD)
		updated = await self._repository.update(uid, changes, expected_version=profile.version)
		obs_metrics.inc_alumni_transition(action.value, target.value)
		LOGGER.info(
			"alumni.profile_transitioned",
			extra={"uid": uid, "action": action.value, "from": profile.status.value, "to": target.value},
		)
		await self._publish(updated, action.value, profile.status, now, actor_id=actor_id, reason=reason)
		return updated

	async def _publish(
		self,
		profile: AlumniProfile,
		action: str,
		previous: Optional[AlumniStatus],
		occurred_at: datetime,
		*,
		actor_id: Optional[str] = None,
		reason: Optional[str] = None,
	) -> None:
		await self._bus.publish(
			ProfileTransitioned(
				uid=profile.uid,
				action=action,
				previous=previous,
				current=profile.status,
				profile=replace(profile),
				occurred_at=occurred_at,
				actor_id=actor_id,
				reason=reason,
			)
		)
