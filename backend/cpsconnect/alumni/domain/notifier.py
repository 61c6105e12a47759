"""Email notifications sent to profile owners after moderation decisions."""

from __future__ import annotations

import hashlib
import logging
from typing import Optional, Protocol

from cpsconnect.alumni.domain import audit
from cpsconnect.alumni.domain.events import ProfileTransitioned
from cpsconnect.alumni.domain.models import AlumniStatus
from cpsconnect.alumni.domain.policy import DeliveryError
from cpsconnect.obs import metrics as obs_metrics

LOGGER = logging.getLogger(__name__)

_FOOTER = "---\nCeci est une notification automatique, merci de ne pas y répondre directement."


class Mailer(Protocol):
	"""Outbound email channel. Implementations raise DeliveryError on failure."""

	async def send(self, to_email: str, subject: str, body: str, *, recipient_name: Optional[str] = None) -> None:
		...


def mask_email(email: str) -> str:
	return hashlib.sha256(email.lower().encode("utf-8")).hexdigest()[:12]


def approval_email(name: str, profile_url: str) -> tuple[str, str]:
	subject = "Votre profil alumni a été approuvé !"
	body = f"""Bonjour {name},

Nous avons le plaisir de vous informer que votre profil alumni a été approuvé par notre équipe !

Félicitations ! Votre profil est maintenant visible dans l'annuaire alumni.

Vous pouvez dès à présent :
• Consulter votre profil public
• Être contacté par d'autres alumni
• Profiter de toutes les fonctionnalités de l'annuaire

Pour voir votre profil : {profile_url}

Merci de faire partie de notre communauté !

{_FOOTER}"""
	return subject, body


def rejection_email(name: str, reason: Optional[str], edit_url: str) -> tuple[str, str]:
	subject = "Votre profil alumni nécessite des modifications"
	body = f"""Bonjour {name},

Nous avons examiné votre profil alumni et nous avons besoin que vous apportiez quelques modifications avant de pouvoir l'approuver.

Raison du rejet :
{reason or 'Aucune raison spécifiée'}

Que faire maintenant ?
• Connectez-vous à votre compte
• Accédez à "Mon profil alumni"
• Modifiez les informations selon les indications ci-dessus
• Soumettez à nouveau votre profil

Nous examinerons votre profil dès que possible après vos modifications.

Pour modifier votre profil : {edit_url}

Si vous avez des questions, n'hésitez pas à nous contacter.

{_FOOTER}"""
	return subject, body


class ProfileNotifier:
	"""Event bus subscriber mailing the owner after approve/reject.

	Delivery failures are logged, counted and audited; they never reach the
	lifecycle engine.
	"""

	def __init__(self, mailer: Mailer, *, app_url: str, notify_on_reapproval: bool = True) -> None:
		self._mailer = mailer
		self._app_url = app_url.rstrip("/")
		self._notify_on_reapproval = notify_on_reapproval

	async def __call__(self, event: ProfileTransitioned) -> None:
		profile = event.profile
		if event.action == "approve":
			if event.previous is AlumniStatus.APPROVED and not self._notify_on_reapproval:
				obs_metrics.inc_alumni_notification("approved", "skipped")
				return
			kind = "approved"
			subject, body = approval_email(profile.name, f"{self._app_url}/#/alumni/{profile.uid}")
		elif event.action == "reject":
			kind = "rejected"
			subject, body = rejection_email(profile.name, event.reason, f"{self._app_url}/#/my-alumni-profile")
		else:
			return
		if not profile.email:
			obs_metrics.inc_alumni_notification(kind, "skipped")
			return

		try:
			await self._mailer.send(profile.email, subject, body, recipient_name=profile.name)
		except DeliveryError as exc:
			obs_metrics.inc_alumni_notification(kind, "failed")
			LOGGER.warning(
				"alumni.notification_failed",
				extra={"uid": profile.uid, "kind": kind, "error": exc.reason, "to": mask_email(profile.email)},
			)
			await audit.log_event("notification_failed", uid=profile.uid, meta={"kind": kind, "error": exc.reason})
			return
		obs_metrics.inc_alumni_notification(kind, "sent")
		LOGGER.info("alumni.notification_sent", extra={"uid": profile.uid, "kind": kind, "to": mask_email(profile.email)})
		await audit.log_event("notification_sent", uid=profile.uid, meta={"kind": kind})
