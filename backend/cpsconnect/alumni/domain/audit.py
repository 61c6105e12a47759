"""Audit trail for alumni directory events, appended to a Redis stream."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from cpsconnect.alumni.domain.events import ProfileTransitioned
from cpsconnect.infra.redis import redis_client

STREAM_KEY = "x:alumni.events"
STREAM_MAXLEN = 10_000


def _now_iso() -> str:
	return datetime.now(timezone.utc).isoformat()


def _stringify(meta: Dict[str, Any]) -> Dict[str, str]:
	return {key: ("" if value is None else str(value)) for key, value in meta.items()}


async def log_event(event: str, *, uid: Optional[str] = None, meta: Optional[Dict[str, Any]] = None) -> None:
	payload: Dict[str, Any] = {"event": event, "ts": _now_iso()}
	if uid:
		payload["uid"] = uid
	if meta:
		payload.update(_stringify(meta))
	await redis_client.xadd(STREAM_KEY, payload, maxlen=STREAM_MAXLEN, approximate=True)


async def record_transition(event: ProfileTransitioned) -> None:
	"""Event bus subscriber writing one audit entry per lifecycle event."""
	await log_event(
		f"profile_{event.action}",
		uid=event.uid,
		meta={
			"from": event.previous.value if event.previous else None,
			"to": event.current.value,
			"actor_id": event.actor_id,
			"at": event.occurred_at.isoformat(),
		},
	)
