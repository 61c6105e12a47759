"""Pydantic schemas for the alumni directory API."""

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from cpsconnect.alumni.domain.completion import Completion
from cpsconnect.alumni.domain.importer import ImportResult
from cpsconnect.alumni.domain.models import AlumniProfile, ContactRequest, Recommendation
from cpsconnect.alumni.domain.stats import AlumniStats

ShortText = Annotated[str, Field(max_length=200)]
LongText = Annotated[str, Field(max_length=5000)]
Tag = Annotated[str, Field(max_length=80)]


class PortfolioItem(BaseModel):
	title: ShortText
	description: LongText = ""
	url: Optional[str] = None
	image: Optional[str] = None


class ServiceOffered(BaseModel):
	name: ShortText
	description: LongText = ""
	category: ShortText = ""


class LanguageSkill(BaseModel):
	name: Tag
	level: Optional[Tag] = None


class Visibility(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	show_email: Optional[bool] = Field(default=None, alias="showEmail")
	show_city: Optional[bool] = Field(default=None, alias="showCity")
	show_company: Optional[bool] = Field(default=None, alias="showCompany")


class ProfileFields(BaseModel):
	"""Owner editable content. Unset or null means unchanged, "" or [] clears."""

	headline: Optional[ShortText] = None
	bio: Optional[LongText] = None
	photo: Optional[str] = None
	sectors: Optional[List[Tag]] = None
	expertise: Optional[List[Tag]] = None
	company: Optional[ShortText] = None
	position: Optional[ShortText] = None
	company_description: Optional[LongText] = None
	company_website: Optional[str] = None
	personal_website: Optional[str] = None
	portfolio: Optional[List[PortfolioItem]] = None
	services: Optional[List[ServiceOffered]] = None
	seeking: Optional[List[Tag]] = None
	offering: Optional[List[Tag]] = None
	seeking_details: Optional[LongText] = None
	rate_if_paid: Optional[ShortText] = None
	linkedin: Optional[str] = None
	github: Optional[str] = None
	twitter: Optional[str] = None
	city: Optional[ShortText] = None
	country: Optional[ShortText] = None
	soft_skills: Optional[List[Tag]] = None
	languages: Optional[List[LanguageSkill]] = None
	interests: Optional[List[Tag]] = None
	education: Optional[List[Dict[str, Any]]] = None
	experiences: Optional[List[Dict[str, Any]]] = None
	certifications: Optional[List[Dict[str, Any]]] = None
	availability: Optional[ShortText] = None
	visibility: Optional[Visibility] = None

	def to_fields(self) -> Dict[str, Any]:
		fields = self.model_dump(exclude_unset=True, exclude={"submit"})
		for key in ("portfolio", "services", "languages"):
			items = getattr(self, key)
			if key in fields and items is not None:
				fields[key] = [item.model_dump(exclude_none=True) for item in items]
		if "visibility" in fields and self.visibility is not None:
			fields["visibility"] = self.visibility.model_dump(by_alias=True, exclude_none=True)
		return fields


class ProfileCreateRequest(ProfileFields):
	name: Annotated[str, Field(min_length=1, max_length=120)]
	email: EmailStr
	year_promo: int
	submit: bool = False


class ProfilePatchRequest(ProfileFields):
	name: Optional[Annotated[str, Field(max_length=120)]] = None
	email: Optional[EmailStr] = None
	year_promo: Optional[int] = None


class PublicProfileOut(BaseModel):
	"""Directory view; contact details stay behind contact mediation."""

	uid: str
	name: str
	year_promo: int
	headline: Optional[str] = None
	bio: Optional[str] = None
	photo: Optional[str] = None
	sectors: List[str] = []
	expertise: List[str] = []
	company: Optional[str] = None
	position: Optional[str] = None
	company_description: Optional[str] = None
	company_website: Optional[str] = None
	personal_website: Optional[str] = None
	portfolio: List[Dict[str, Any]] = []
	services: List[Dict[str, Any]] = []
	seeking: List[str] = []
	offering: List[str] = []
	seeking_details: Optional[str] = None
	rate_if_paid: Optional[str] = None
	linkedin: Optional[str] = None
	github: Optional[str] = None
	twitter: Optional[str] = None
	city: Optional[str] = None
	country: Optional[str] = None
	soft_skills: List[str] = []
	languages: List[Dict[str, Any]] = []
	interests: List[str] = []
	education: List[Dict[str, Any]] = []
	experiences: List[Dict[str, Any]] = []
	certifications: List[Dict[str, Any]] = []
	availability: Optional[str] = None
	endorsement_count: int = 0
	date_created: Optional[datetime] = None
	date_validation: Optional[datetime] = None

	@classmethod
	def from_domain(cls, profile: AlumniProfile) -> "PublicProfileOut":
		return cls.model_validate(asdict(profile))


class ProfileOut(PublicProfileOut):
	"""Owner and moderator view, lifecycle fields included."""

	email: str
	status: Literal["draft", "pending", "approved", "rejected"]
	date_updated: Optional[datetime] = None
	validated_by: Optional[str] = None
	rejection_reason: Optional[str] = None
	visibility: Optional[Dict[str, bool]] = None
	imported_from: Optional[str] = None
	imported_at: Optional[datetime] = None
	version: int

	@classmethod
	def from_domain(cls, profile: AlumniProfile) -> "ProfileOut":
		payload = asdict(profile)
		payload["status"] = profile.status.value
		return cls.model_validate(payload)


class CompletionOut(BaseModel):
	percentage: int
	level: str
	message: str
	missing: List[str]
	suggestions: List[str]

	@classmethod
	def from_domain(cls, completion: Completion) -> "CompletionOut":
		return cls.model_validate(asdict(completion))


class RejectRequest(BaseModel):
	reason: Annotated[str, Field(max_length=2000)] = ""


class ContactRequestIn(BaseModel):
	subject: Annotated[str, Field(max_length=200)]
	message: Annotated[str, Field(max_length=5000)]


class ContactRequestOut(BaseModel):
	id: str
	to_uid: str
	status: Literal["pending", "sent", "failed"]
	date_created: datetime

	@classmethod
	def from_domain(cls, request: ContactRequest) -> "ContactRequestOut":
		return cls(id=request.id, to_uid=request.to_uid, status=request.status.value, date_created=request.date_created)


class RecommendationIn(BaseModel):
	message: Annotated[str, Field(max_length=5000)]


class RecommendationOut(BaseModel):
	id: str
	from_uid: str
	from_name: str
	to_uid: str
	to_name: str
	message: str
	date: datetime
	status: str

	@classmethod
	def from_domain(cls, recommendation: Recommendation) -> "RecommendationOut":
		return cls.model_validate(asdict(recommendation))


class ImportRowIn(BaseModel):
	# Loosely typed: bad values become per-row import errors rather than a 422.
	uid: Optional[str] = None
	name: Optional[str] = None
	email: Optional[str] = None
	year_promo: Optional[Any] = None
	city: Optional[str] = None
	country: Optional[str] = None
	position: Optional[str] = None
	company: Optional[str] = None
	headline: Optional[str] = None
	bio: Optional[str] = None
	sectors: Optional[List[str]] = None
	expertise: Optional[List[str]] = None


class ImportRequest(BaseModel):
	rows: Annotated[List[ImportRowIn], Field(max_length=2000)]
	source: Annotated[str, Field(max_length=80)] = "bulk_import"


class ImportRowErrorOut(BaseModel):
	row: int
	email: str
	error: str


class ImportResultOut(BaseModel):
	success: int
	skipped: int
	errors: List[ImportRowErrorOut]

	@classmethod
	def from_domain(cls, result: ImportResult) -> "ImportResultOut":
		return cls.model_validate(asdict(result))


class StatsOut(BaseModel):
	total_profiles: int
	draft_profiles: int
	pending_profiles: int
	approved_profiles: int
	rejected_profiles: int
	profiles_by_year: Dict[int, int]
	profiles_by_sector: Dict[str, int]
	profiles_by_country: Dict[str, int]

	@classmethod
	def from_domain(cls, stats: AlumniStats) -> "StatsOut":
		return cls.model_validate(asdict(stats))


class HasProfileOut(BaseModel):
	has_profile: bool
