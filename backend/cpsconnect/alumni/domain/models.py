"""Alumni directory domain models.

Profiles are stored as camelCase documents (the shape the web client already
consumes) and handled in Python as snake_case dataclasses.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional


class AlumniStatus(str, Enum):
	DRAFT = "draft"
	PENDING = "pending"
	APPROVED = "approved"
	REJECTED = "rejected"


class ContactStatus(str, Enum):
	PENDING = "pending"
	SENT = "sent"
	FAILED = "failed"


class _DeleteField:
	"""Marker asking the store to remove a key from the stored document."""

	_instance: Optional["_DeleteField"] = None

	def __new__(cls) -> "_DeleteField":
		if cls._instance is None:
			cls._instance = super().__new__(cls)
		return cls._instance

	def __repr__(self) -> str:
		return "DELETE_FIELD"


DELETE_FIELD = _DeleteField()

_DATETIME_FIELDS = frozenset({"date_created", "date_updated", "date_validation", "imported_at"})
# Owned by the lifecycle engine; partial updates may never touch them.
LIFECYCLE_FIELDS = frozenset({"uid", "status", "date_created", "date_updated", "date_validation", "validated_by", "rejection_reason", "version"})


def document_key(attribute: str) -> str:
	head, *rest = attribute.split("_")
	return head + "".join(part.title() for part in rest)


def _format_value(attribute: str, value: Any) -> Any:
	if isinstance(value, datetime):
		return value.isoformat()
	if isinstance(value, Enum):
		return value.value
	return value


def _parse_value(attribute: str, value: Any) -> Any:
	if attribute in _DATETIME_FIELDS and isinstance(value, str):
		return datetime.fromisoformat(value)
	return value


@dataclass(slots=True)
class AlumniProfile:
	uid: str
	name: str
	email: str
	year_promo: int
	status: AlumniStatus = AlumniStatus.DRAFT
	date_created: Optional[datetime] = None
	date_updated: Optional[datetime] = None
	date_validation: Optional[datetime] = None
	validated_by: Optional[str] = None
	rejection_reason: Optional[str] = None
	version: int = 1
	headline: Optional[str] = None
	bio: Optional[str] = None
	photo: Optional[str] = None
	sectors: List[str] = field(default_factory=list)
	expertise: List[str] = field(default_factory=list)
	company: Optional[str] = None
	position: Optional[str] = None
	company_description: Optional[str] = None
	company_website: Optional[str] = None
	personal_website: Optional[str] = None
	portfolio: List[Dict[str, Any]] = field(default_factory=list)
	services: List[Dict[str, Any]] = field(default_factory=list)
	seeking: List[str] = field(default_factory=list)
	offering: List[str] = field(default_factory=list)
	seeking_details: Optional[str] = None
	rate_if_paid: Optional[str] = None
	linkedin: Optional[str] = None
	github: Optional[str] = None
	twitter: Optional[str] = None
	city: Optional[str] = None
	country: Optional[str] = None
	soft_skills: List[str] = field(default_factory=list)
	languages: List[Dict[str, Any]] = field(default_factory=list)
	interests: List[str] = field(default_factory=list)
	education: List[Dict[str, Any]] = field(default_factory=list)
	experiences: List[Dict[str, Any]] = field(default_factory=list)
	certifications: List[Dict[str, Any]] = field(default_factory=list)
	availability: Optional[str] = None
	visibility: Optional[Dict[str, bool]] = None
	endorsement_count: int = 0
	imported_from: Optional[str] = None
	imported_at: Optional[datetime] = None

	@property
	def language_names(self) -> List[str]:
		return [str(item.get("name")) for item in self.languages if item.get("name")]

	def to_document(self) -> Dict[str, Any]:
		"""Serialise to the stored document; absent values are left out."""
		doc: Dict[str, Any] = {}
		for attr in fields(self):
			if attr.name == "version":
				continue
			value = getattr(self, attr.name)
			if value is None:
				continue
			doc[document_key(attr.name)] = _format_value(attr.name, value)
		return doc

	@classmethod
	def from_document(cls, doc: Mapping[str, Any], *, version: int = 1) -> "AlumniProfile":
		kwargs: Dict[str, Any] = {}
		for attr in fields(cls):
			if attr.name == "version":
				continue
			key = document_key(attr.name)
			if key in doc and doc[key] is not None:
				kwargs[attr.name] = _parse_value(attr.name, doc[key])
		kwargs["status"] = AlumniStatus(kwargs.get("status", AlumniStatus.DRAFT))
		kwargs.setdefault("year_promo", 0)
		kwargs["year_promo"] = int(kwargs["year_promo"])
		return cls(version=version, **kwargs)


PROFILE_ATTRIBUTES = frozenset(attr.name for attr in fields(AlumniProfile))


def encode_changes(changes: Mapping[str, Any]) -> Dict[str, Any]:
	"""Translate attribute-keyed changes into document keys, keeping DELETE_FIELD markers."""
	return {
		document_key(attribute): value if value is DELETE_FIELD else _format_value(attribute, value)
		for attribute, value in changes.items()
	}


@dataclass(slots=True)
class ContactRequest:
	id: str
	from_uid: str
	from_name: str
	from_email: str
	to_uid: str
	to_name: str
	to_email: str
	subject: str
	message: str
	status: ContactStatus
	date_created: datetime


@dataclass(slots=True)
class Recommendation:
	id: str
	from_uid: str
	from_name: str
	to_uid: str
	to_name: str
	message: str
	date: datetime
	status: str = "pending"
