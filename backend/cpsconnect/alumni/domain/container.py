"""Lightweight service container shared by the alumni modules."""

from __future__ import annotations

from typing import Optional

import asyncpg

from cpsconnect.alumni.domain import audit
from cpsconnect.alumni.domain.contact import ContactService
from cpsconnect.alumni.domain.directory import DirectoryService
from cpsconnect.alumni.domain.events import EventBus
from cpsconnect.alumni.domain.lifecycle import ProfileLifecycle
from cpsconnect.alumni.domain.moderation import ModerationService
from cpsconnect.alumni.domain.notifier import Mailer, ProfileNotifier
from cpsconnect.alumni.domain.recommendations import RecommendationService
from cpsconnect.alumni.domain.repository import (
	ContactRepository,
	InMemoryContactRepository,
	InMemoryProfileRepository,
	InMemoryRecommendationRepository,
	ProfileRepository,
	RecommendationRepository,
)
from cpsconnect.alumni.infra.mailer import SmtpMailer
from cpsconnect.alumni.infra.postgres_repo import (
	PostgresContactRepository,
	PostgresProfileRepository,
	PostgresRecommendationRepository,
)
from cpsconnect.settings import settings

_profiles: ProfileRepository = InMemoryProfileRepository()
_contacts: ContactRepository = InMemoryContactRepository()
_recommendations: RecommendationRepository = InMemoryRecommendationRepository()
_mailer: Mailer = SmtpMailer()
_bus = EventBus()
_lifecycle: ProfileLifecycle
_directory: DirectoryService
_moderation: ModerationService
_contact: ContactService
_recommendation_service: RecommendationService


def _wire() -> None:
	global _bus, _lifecycle, _directory, _moderation, _contact, _recommendation_service
	_bus = EventBus()
	_bus.subscribe(
		ProfileNotifier(
			_mailer,
			app_url=settings.public_app_url,
			notify_on_reapproval=settings.alumni_notify_on_reapproval,
		)
	)
	_bus.subscribe(audit.record_transition)
	_lifecycle = ProfileLifecycle(_profiles, _bus)
	_directory = DirectoryService(
		_profiles,
		fetch_limit=settings.directory_fetch_limit,
		default_limit=settings.directory_default_limit,
	)
	_moderation = ModerationService(_lifecycle, _profiles, lock_ttl_seconds=settings.review_lock_ttl_seconds)
	_contact = ContactService(
		_contacts,
		_profiles,
		_mailer,
		app_url=settings.public_app_url,
		per_hour=settings.contact_per_hour,
	)
	_recommendation_service = RecommendationService(
		_recommendations,
		_profiles,
		per_hour=settings.recommendations_per_hour,
	)


_wire()


def configure(
	*,
	profiles: Optional[ProfileRepository] = None,
	contacts: Optional[ContactRepository] = None,
	recommendations: Optional[RecommendationRepository] = None,
	mailer: Optional[Mailer] = None,
) -> None:
	"""Swap storage or delivery collaborators and rebuild the services on top of them."""
	global _profiles, _contacts, _recommendations, _mailer
	if profiles is not None:
		_profiles = profiles
	if contacts is not None:
		_contacts = contacts
	if recommendations is not None:
		_recommendations = recommendations
	if mailer is not None:
		_mailer = mailer
	_wire()


def configure_postgres(pool: Optional[asyncpg.Pool] = None) -> None:
	configure(
		profiles=PostgresProfileRepository(pool),
		contacts=PostgresContactRepository(pool),
		recommendations=PostgresRecommendationRepository(pool),
	)


def reset_memory_state() -> None:
	configure(
		profiles=InMemoryProfileRepository(),
		contacts=InMemoryContactRepository(),
		recommendations=InMemoryRecommendationRepository(),
	)


def get_profile_repository() -> ProfileRepository:
	return _profiles


def get_event_bus() -> EventBus:
	return _bus


def get_lifecycle() -> ProfileLifecycle:
	return _lifecycle


def get_directory() -> DirectoryService:
	return _directory


def get_moderation() -> ModerationService:
	return _moderation


def get_contact_service() -> ContactService:
	return _contact


def get_recommendation_service() -> RecommendationService:
	return _recommendation_service
