"""Validation helpers and error taxonomy for the alumni directory."""

from __future__ import annotations

from typing import Optional

YEAR_PROMO_MIN = 1950
YEAR_PROMO_MAX = 2100
SUBJECT_MAX_LEN = 200
MESSAGE_MAX_LEN = 5000
REASON_MAX_LEN = 2000


class AlumniError(ValueError):
	"""Base error carrying a machine readable reason and an HTTP status."""

	status_code = 400

	def __init__(self, reason: str, *, status_code: Optional[int] = None) -> None:
		super().__init__(reason)
		self.reason = reason
		if status_code is not None:
			self.status_code = status_code


class ValidationError(AlumniError):
	status_code = 400


class InvalidTransition(AlumniError):
	status_code = 409


class ProfileNotFound(AlumniError):
	status_code = 404

	def __init__(self, reason: str = "profile_not_found") -> None:
		super().__init__(reason)


class AlreadyExists(AlumniError):
	status_code = 409

	def __init__(self, reason: str = "profile_exists") -> None:
		super().__init__(reason)


class PermissionDenied(AlumniError):
	status_code = 403


class Conflict(AlumniError):
	status_code = 409


class StoreError(AlumniError):
	status_code = 503

	def __init__(self, reason: str = "store_unavailable") -> None:
		super().__init__(reason)


class DeliveryError(AlumniError):
	status_code = 502

	def __init__(self, reason: str = "delivery_failed") -> None:
		super().__init__(reason)


class RateLimited(AlumniError):
	status_code = 429

	def __init__(self, reason: str = "rate_limited") -> None:
		super().__init__(reason)


def require_text(value: Optional[str], reason: str, *, max_len: Optional[int] = None) -> str:
	"""Return a stripped non-empty string or raise ValidationError(reason)."""
	cleaned = (value or "").strip()
	if not cleaned:
		raise ValidationError(reason)
	if max_len is not None and len(cleaned) > max_len:
		raise ValidationError(f"{reason.removesuffix('_required')}_too_long")
	return cleaned


def normalise_email(value: Optional[str]) -> str:
	email = require_text(value, "email_required").lower()
	if "@" not in email or email.startswith("@") or email.endswith("@"):
		raise ValidationError("email_invalid")
	return email


def validate_year_promo(value: object) -> int:
	if value is None or value == "":
		raise ValidationError("year_promo_required")
	try:
		year = int(value)  # type: ignore[arg-type]
	except (TypeError, ValueError):
		raise ValidationError("year_promo_invalid") from None
	if year < YEAR_PROMO_MIN or year > YEAR_PROMO_MAX:
		raise ValidationError("year_promo_out_of_range")
	return year
