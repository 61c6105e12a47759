"""Bulk import of pre-approved alumni profiles from a parsed spreadsheet."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Mapping, Sequence

from cpsconnect.alumni.domain.lifecycle import clean_fields
from cpsconnect.alumni.domain.models import DELETE_FIELD, AlumniProfile, AlumniStatus
from cpsconnect.alumni.domain.policy import AlreadyExists, AlumniError, ValidationError, normalise_email, require_text
from cpsconnect.alumni.domain.repository import ProfileRepository
from cpsconnect.obs import metrics as obs_metrics

LOGGER = logging.getLogger(__name__)

# Row 1 of the source file holds the column headers.
FIRST_DATA_ROW = 2
IMPORT_FIELDS = ("name", "email", "year_promo", "city", "country", "position", "company", "sectors", "expertise", "bio", "headline")


@dataclass(slots=True)
class ImportRowError:
	row: int
	email: str
	error: str


@dataclass(slots=True)
class ImportResult:
	success: int = 0
	skipped: int = 0
	errors: List[ImportRowError] = field(default_factory=list)


async def _import_row(
	repository: ProfileRepository,
	row: Mapping[str, Any],
	*,
	admin_id: str,
	source: str,
	now: datetime,
) -> bool:
	"""Insert one row; returns False when the row is skipped as a duplicate."""
	uid = require_text(row.get("uid"), "uid_required")
	email = normalise_email(row.get("email"))
	if await repository.query(where={"email": email}, limit=1):
		return False
	values = clean_fields({key: row.get(key) for key in IMPORT_FIELDS})
	for required in ("name", "year_promo"):
		if required not in values:
			raise ValidationError(f"{required}_required")
	profile = AlumniProfile(
		uid=uid,
		status=AlumniStatus.APPROVED,
		date_created=now,
		date_updated=now,
		date_validation=now,
		validated_by=admin_id,
		imported_from=source,
		imported_at=now,
		**{key: value for key, value in values.items() if value is not DELETE_FIELD},
	)
	try:
		await repository.insert(profile)
	except AlreadyExists:
		return False
	return True


async def import_profiles(
	repository: ProfileRepository,
	rows: Sequence[Mapping[str, Any]],
	*,
	admin_id: str,
	now: datetime,
	source: str = "bulk_import",
) -> ImportResult:
	"""Create approved profiles, skipping emails or uids that already have one.

	Per-row failures are collected with their spreadsheet row number; one bad
	row never stops the batch.
	"""
	result = ImportResult()
	LOGGER.info("alumni.import_started", extra={"rows": len(rows), "source": source})
	for index, row in enumerate(rows):
		row_number = index + FIRST_DATA_ROW
		try:
			created = await _import_row(repository, row, admin_id=admin_id, source=source, now=now)
		except AlumniError as exc:
			result.errors.append(ImportRowError(row=row_number, email=str(row.get("email") or ""), error=exc.reason))
			continue
		if created:
			result.success += 1
		else:
			result.skipped += 1
	obs_metrics.inc_import_rows("success", result.success)
	obs_metrics.inc_import_rows("skipped", result.skipped)
	obs_metrics.inc_import_rows("error", len(result.errors))
	LOGGER.info(
		"alumni.import_finished",
		extra={"success": result.success, "skipped": result.skipped, "errors": len(result.errors)},
	)
	return result
