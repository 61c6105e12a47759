"""SMTP delivery for alumni notifications."""

from __future__ import annotations

import logging
from email.message import EmailMessage
from email.utils import formataddr
from typing import Optional

import aiosmtplib

from cpsconnect.alumni.domain.notifier import mask_email
from cpsconnect.alumni.domain.policy import DeliveryError
from cpsconnect.settings import settings

logger = logging.getLogger(__name__)


class SmtpMailer:
	"""Sends plain text mail through the configured relay; every failure surfaces as DeliveryError."""

	async def send(self, to_email: str, subject: str, body: str, *, recipient_name: Optional[str] = None) -> None:
		msg = EmailMessage()
		msg["From"] = formataddr((settings.smtp_from_name, settings.smtp_from_email))
		msg["To"] = formataddr((recipient_name or "", to_email))
		msg["Subject"] = subject
		msg.set_content(body)

		# STARTTLS on 587, implicit TLS on 465.
		start_tls = bool(settings.smtp_tls) and int(settings.smtp_port) == 587
		use_tls = bool(settings.smtp_tls) and int(settings.smtp_port) == 465
		try:
			await aiosmtplib.send(
				msg,
				hostname=settings.smtp_host,
				port=settings.smtp_port,
				username=settings.smtp_user,
				password=settings.smtp_password,
				start_tls=start_tls,
				use_tls=use_tls,
				timeout=settings.smtp_timeout_seconds,
			)
		except (aiosmtplib.SMTPException, OSError) as exc:
			logger.error("Failed to send email to %s: %s", mask_email(to_email), type(exc).__name__)
			raise DeliveryError("smtp_failed") from exc
		logger.info("Email sent to %s", mask_email(to_email))
