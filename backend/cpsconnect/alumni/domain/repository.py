"""Storage contracts for the alumni directory plus in-memory implementations."""

from __future__ import annotations

import copy
from dataclasses import replace
from typing import Any, Dict, List, Mapping, Optional, Protocol

from cpsconnect.alumni.domain.models import (
	DELETE_FIELD,
	AlumniProfile,
	ContactRequest,
	ContactStatus,
	Recommendation,
	document_key,
	encode_changes,
)
from cpsconnect.alumni.domain.policy import AlreadyExists, Conflict, ProfileNotFound, ValidationError

SORTABLE_FIELDS = frozenset({"name", "date_created", "date_updated", "date_validation", "year_promo"})


class ProfileRepository(Protocol):
	"""Keyed profile store with equality filters, a single sort field and a row limit."""

	async def get(self, uid: str) -> Optional[AlumniProfile]:
		...

	async def insert(self, profile: AlumniProfile) -> AlumniProfile:
		...

	async def update(
		self,
		uid: str,
		changes: Mapping[str, Any],
		*,
		expected_version: Optional[int] = None,
	) -> AlumniProfile:
		...

	async def delete(self, uid: str) -> bool:
		...

	async def query(
		self,
		*,
		where: Optional[Mapping[str, Any]] = None,
		order_by: Optional[str] = None,
		descending: bool = False,
		limit: Optional[int] = None,
	) -> List[AlumniProfile]:
		...

	async def increment(self, uid: str, attribute: str, amount: int = 1) -> None:
		...


class ContactRepository(Protocol):
	async def create(self, request: ContactRequest) -> None:
		...

	async def set_status(self, request_id: str, status: ContactStatus) -> None:
		...

	async def get(self, request_id: str) -> Optional[ContactRequest]:
		...


class RecommendationRepository(Protocol):
	async def create(self, recommendation: Recommendation) -> None:
		...

	async def list_received(self, uid: str) -> List[Recommendation]:
		...

	async def list_sent(self, uid: str) -> List[Recommendation]:
		...


def check_sort_field(order_by: Optional[str]) -> None:
	if order_by is not None and order_by not in SORTABLE_FIELDS:
		raise ValidationError("sort_field_invalid")


class InMemoryProfileRepository(ProfileRepository):
	"""Keeps serialised documents so the in-memory path exercises the same encoding as Postgres."""

	def __init__(self) -> None:
		self.documents: Dict[str, Dict[str, Any]] = {}
		self.versions: Dict[str, int] = {}

	def _load(self, uid: str) -> AlumniProfile:
		return AlumniProfile.from_document(copy.deepcopy(self.documents[uid]), version=self.versions[uid])

	async def get(self, uid: str) -> Optional[AlumniProfile]:
		if uid not in self.documents:
			return None
		return self._load(uid)

	async def insert(self, profile: AlumniProfile) -> AlumniProfile:
		if profile.uid in self.documents:
			raise AlreadyExists()
		self.documents[profile.uid] = profile.to_document()
		self.versions[profile.uid] = 1
		return replace(profile, version=1)

	async def update(
		self,
		uid: str,
		changes: Mapping[str, Any],
		*,
		expected_version: Optional[int] = None,
	) -> AlumniProfile:
		if uid not in self.documents:
			raise ProfileNotFound()
		if expected_version is not None and self.versions[uid] != expected_version:
			raise Conflict("version_conflict")
		doc = self.documents[uid]
		for key, value in encode_changes(changes).items():
			if value is DELETE_FIELD:
				doc.pop(key, None)
			else:
				doc[key] = copy.deepcopy(value)
		self.versions[uid] += 1
		return self._load(uid)

	async def delete(self, uid: str) -> bool:
		self.versions.pop(uid, None)
		return self.documents.pop(uid, None) is not None

	async def query(
		self,
		*,
		where: Optional[Mapping[str, Any]] = None,
		order_by: Optional[str] = None,
		descending: bool = False,
		limit: Optional[int] = None,
	) -> List[AlumniProfile]:
		check_sort_field(order_by)
		criteria = encode_changes(where or {})
		matches = [
			uid
			for uid, doc in self.documents.items()
			if all(doc.get(key) == value for key, value in criteria.items())
		]
		if order_by is not None:
			key = document_key(order_by)
			# Documents missing the sort key drop out of ordered queries.
			matches = [uid for uid in matches if self.documents[uid].get(key) is not None]
			matches.sort(key=lambda uid: self.documents[uid][key], reverse=descending)
		if limit is not None:
			matches = matches[:limit]
		return [self._load(uid) for uid in matches]

	async def increment(self, uid: str, attribute: str, amount: int = 1) -> None:
		if uid not in self.documents:
			raise ProfileNotFound()
		key = document_key(attribute)
		doc = self.documents[uid]
		doc[key] = int(doc.get(key) or 0) + amount
		self.versions[uid] += 1


class InMemoryContactRepository(ContactRepository):
	def __init__(self) -> None:
		self.requests: Dict[str, ContactRequest] = {}

	async def create(self, request: ContactRequest) -> None:
		self.requests[request.id] = replace(request)

	async def set_status(self, request_id: str, status: ContactStatus) -> None:
		request = self.requests.get(request_id)
		if request is None:
			raise ProfileNotFound("contact_request_not_found")
		request.status = status

	async def get(self, request_id: str) -> Optional[ContactRequest]:
		request = self.requests.get(request_id)
		return replace(request) if request is not None else None


class InMemoryRecommendationRepository(RecommendationRepository):
	def __init__(self) -> None:
		self.items: List[Recommendation] = []

	async def create(self, recommendation: Recommendation) -> None:
		self.items.append(replace(recommendation))

	async def list_received(self, uid: str) -> List[Recommendation]:
		found = [item for item in self.items if item.to_uid == uid]
		return sorted(found, key=lambda item: item.date, reverse=True)

	async def list_sent(self, uid: str) -> List[Recommendation]:
		found = [item for item in self.items if item.from_uid == uid]
		return sorted(found, key=lambda item: item.date, reverse=True)
