"""In-process event bus carrying lifecycle transitions to their subscribers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Callable, List, Optional

from cpsconnect.alumni.domain.models import AlumniProfile, AlumniStatus

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ProfileTransitioned:
	uid: str
	action: str
	previous: Optional[AlumniStatus]
	current: AlumniStatus
	profile: AlumniProfile
	occurred_at: datetime
	actor_id: Optional[str] = None
	reason: Optional[str] = None


Subscriber = Callable[[ProfileTransitioned], Awaitable[None]]


class EventBus:
	"""Delivers events to every subscriber; a failing subscriber never affects the others."""

	def __init__(self) -> None:
		self._subscribers: List[Subscriber] = []

	def subscribe(self, subscriber: Subscriber) -> None:
		self._subscribers.append(subscriber)

	def clear(self) -> None:
		self._subscribers.clear()

	async def publish(self, event: ProfileTransitioned) -> None:
		for subscriber in list(self._subscribers):
			try:
				await subscriber(event)
			except Exception:
				LOGGER.exception(
					"alumni.event_subscriber_failed",
					extra={"uid": event.uid, "action": event.action},
				)
