"""Contact mediation: relay a message to a profile owner by email."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional
from uuid import uuid4

from cpsconnect.alumni.domain.models import AlumniProfile, AlumniStatus, ContactRequest, ContactStatus
from cpsconnect.alumni.domain.notifier import Mailer, mask_email
from cpsconnect.alumni.domain.policy import (
	MESSAGE_MAX_LEN,
	SUBJECT_MAX_LEN,
	DeliveryError,
	ProfileNotFound,
	RateLimited,
	ValidationError,
	require_text,
)
from cpsconnect.alumni.domain.rbac import Actor
from cpsconnect.alumni.domain.repository import ContactRepository, ProfileRepository
from cpsconnect.infra import rate_limit
from cpsconnect.obs import metrics as obs_metrics

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ContactParty:
	uid: str
	name: str
	email: str

	@classmethod
	def from_profile(cls, profile: AlumniProfile) -> "ContactParty":
		return cls(uid=profile.uid, name=profile.name, email=profile.email)


def _now() -> datetime:
	return datetime.now(timezone.utc)


def contact_email(sender: ContactParty, recipient: ContactParty, subject: str, message: str, app_url: str) -> tuple[str, str]:
	body = f"""Bonjour {recipient.name},

Vous avez reçu une nouvelle demande de contact via l'annuaire alumni CPS Connect.

De : {sender.name}
Email : {sender.email}
Objet : {subject}

Message :
{message}

---

Vous pouvez répondre directement à {sender.email} pour donner suite à cette demande.

Pour voir le profil de {sender.name} : {app_url}/#/alumni/{sender.uid}

---
Ceci est une notification automatique de CPS Connect."""
	return f"Nouvelle demande de contact : {subject}", body


class ContactService:
	def __init__(
		self,
		contacts: ContactRepository,
		profiles: ProfileRepository,
		mailer: Mailer,
		*,
		app_url: str,
		per_hour: int = 10,
		clock: Callable[[], datetime] = _now,
	) -> None:
		self._contacts = contacts
		self._profiles = profiles
		self._mailer = mailer
		self._app_url = app_url.rstrip("/")
		self._per_hour = per_hour
		self._clock = clock

	async def send_contact_request(
		self,
		sender: ContactParty,
		recipient: ContactParty,
		subject: Optional[str],
		message: Optional[str],
	) -> ContactRequest:
		"""Persist the request as pending, mail the recipient, then record the outcome.

		A delivery failure leaves the request `failed` and raises DeliveryError.
		There is no retry.
		"""
		subject = require_text(subject, "subject_required", max_len=SUBJECT_MAX_LEN)
		message = require_text(message, "message_required", max_len=MESSAGE_MAX_LEN)
		request = ContactRequest(
			id=uuid4().hex,
			from_uid=sender.uid,
			from_name=sender.name,
			from_email=sender.email,
			to_uid=recipient.uid,
			to_name=recipient.name,
			to_email=recipient.email,
			subject=subject,
			message=message,
			status=ContactStatus.PENDING,
			date_created=self._clock(),
		)
		await self._contacts.create(request)

		mail_subject, body = contact_email(sender, recipient, subject, message, self._app_url)
		try:
			await self._mailer.send(recipient.email, mail_subject, body, recipient_name=recipient.name)
		except DeliveryError:
			await self._contacts.set_status(request.id, ContactStatus.FAILED)
			request.status = ContactStatus.FAILED
			obs_metrics.inc_contact_request("failed")
			LOGGER.warning(
				"alumni.contact_delivery_failed",
				extra={"contact_request_id": request.id, "from_uid": sender.uid, "to_uid": recipient.uid, "to": mask_email(recipient.email)},
			)
			raise
		await self._contacts.set_status(request.id, ContactStatus.SENT)
		request.status = ContactStatus.SENT
		obs_metrics.inc_contact_request("sent")
		LOGGER.info("alumni.contact_sent", extra={"from_uid": sender.uid, "to_uid": recipient.uid})
		return request

	async def contact_profile(
		self,
		actor: Actor,
		to_uid: str,
		subject: Optional[str],
		message: Optional[str],
	) -> ContactRequest:
		"""Resolve both parties, enforce the hourly budget and relay the message."""
		if actor.id == to_uid:
			raise ValidationError("cannot_contact_self")
		subject = require_text(subject, "subject_required", max_len=SUBJECT_MAX_LEN)
		message = require_text(message, "message_required", max_len=MESSAGE_MAX_LEN)
		recipient_profile = await self._profiles.get(to_uid)
		if recipient_profile is None or recipient_profile.status is not AlumniStatus.APPROVED:
			raise ProfileNotFound()
		sender_profile = await self._profiles.get(actor.id)
		if sender_profile is not None:
			sender = ContactParty.from_profile(sender_profile)
		else:
			sender = ContactParty(
				uid=actor.id,
				name=require_text(actor.name, "sender_name_required"),
				email=require_text(actor.email, "sender_email_required"),
			)
		if not await rate_limit.allow("alumni_contact", actor.id, limit=self._per_hour, window_seconds=3600):
			obs_metrics.inc_contact_request("rate_limited")
			raise RateLimited()
		return await self.send_contact_request(sender, ContactParty.from_profile(recipient_profile), subject, message)
