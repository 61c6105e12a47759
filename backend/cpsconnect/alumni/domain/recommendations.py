"""Recommendations alumni leave on each other's profiles."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional
from uuid import uuid4

from cpsconnect.alumni.domain.models import AlumniStatus, Recommendation
from cpsconnect.alumni.domain.policy import MESSAGE_MAX_LEN, ProfileNotFound, RateLimited, ValidationError, require_text
from cpsconnect.alumni.domain.rbac import Actor
from cpsconnect.alumni.domain.repository import ProfileRepository, RecommendationRepository
from cpsconnect.infra import rate_limit
from cpsconnect.obs import metrics as obs_metrics

LOGGER = logging.getLogger(__name__)


def _now() -> datetime:
	return datetime.now(timezone.utc)


class RecommendationService:
	def __init__(
		self,
		recommendations: RecommendationRepository,
		profiles: ProfileRepository,
		*,
		per_hour: int = 20,
		clock: Callable[[], datetime] = _now,
	) -> None:
		self._recommendations = recommendations
		self._profiles = profiles
		self._per_hour = per_hour
		self._clock = clock

	async def send_recommendation(self, actor: Actor, to_uid: str, message: Optional[str]) -> Recommendation:
		if actor.id == to_uid:
			raise ValidationError("cannot_recommend_self")
		message = require_text(message, "message_required", max_len=MESSAGE_MAX_LEN)
		recipient = await self._profiles.get(to_uid)
		if recipient is None or recipient.status is not AlumniStatus.APPROVED:
			raise ProfileNotFound()
		sender = await self._profiles.get(actor.id)
		from_name = sender.name if sender is not None else require_text(actor.name, "sender_name_required")
		if not await rate_limit.allow("alumni_recommend", actor.id, limit=self._per_hour, window_seconds=3600):
			raise RateLimited()
		recommendation = Recommendation(
			id=uuid4().hex,
			from_uid=actor.id,
			from_name=from_name,
			to_uid=to_uid,
			to_name=recipient.name,
			message=message,
			date=self._clock(),
		)
		await self._recommendations.create(recommendation)
		await self._profiles.increment(to_uid, "endorsement_count")
		obs_metrics.inc_recommendation()
		LOGGER.info("alumni.recommendation_sent", extra={"from_uid": actor.id, "to_uid": to_uid})
		return recommendation

	async def received(self, uid: str) -> List[Recommendation]:
		return await self._recommendations.list_received(uid)

	async def sent(self, uid: str) -> List[Recommendation]:
		return await self._recommendations.list_sent(uid)
