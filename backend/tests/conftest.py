import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from fakeredis.aioredis import FakeRedis

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
	sys.path.insert(0, str(BACKEND_ROOT))

from cpsconnect.alumni.domain import container
from cpsconnect.alumni.domain.policy import DeliveryError
from cpsconnect.alumni.domain.repository import (
	InMemoryContactRepository,
	InMemoryProfileRepository,
	InMemoryRecommendationRepository,
)
from cpsconnect.infra import postgres
from cpsconnect.main import app
from cpsconnect.settings import settings


class RecordingMailer:
	"""Mailer double keeping every message; flip `fail` to simulate an SMTP outage."""

	def __init__(self) -> None:
		self.sent: list[dict] = []
		self.fail = False

	async def send(self, to_email: str, subject: str, body: str, *, recipient_name: Optional[str] = None) -> None:
		if self.fail:
			raise DeliveryError("smtp_failed")
		self.sent.append({"to": to_email, "subject": subject, "body": body, "name": recipient_name})


class FixedClock:
	def __init__(self, start: Optional[datetime] = None) -> None:
		self.now = start or datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)

	def __call__(self) -> datetime:
		return self.now

	def advance(self, seconds: int = 60) -> datetime:
		self.now = self.now + timedelta(seconds=seconds)
		return self.now


@pytest_asyncio.fixture(autouse=True)
async def fake_redis():
	from cpsconnect.infra.redis import redis_client, set_redis_client
	original = redis_client.client
	client = FakeRedis(decode_responses=True)
	set_redis_client(client)
	try:
		yield client
	finally:
		set_redis_client(original)
		await client.flushall()


@pytest.fixture(autouse=True)
def patch_postgres(monkeypatch):
	async def _noop():
		return None

	monkeypatch.setattr(postgres, "init_pool", _noop)
	monkeypatch.setattr(postgres, "close_pool", _noop)


@pytest.fixture(autouse=True)
def force_test_settings():
	"""Ensure a consistent test environment.

	API tests authenticate via X-User-* headers, which are only accepted in dev mode.
	"""
	original_env = settings.environment
	settings.environment = "dev"
	try:
		yield
	finally:
		settings.environment = original_env


@pytest.fixture
def mailer() -> RecordingMailer:
	return RecordingMailer()


@pytest.fixture
def clock() -> FixedClock:
	return FixedClock()


@pytest.fixture(autouse=True)
def alumni_state(mailer):
	"""Fresh in-memory stores behind the application container for every test."""
	profiles = InMemoryProfileRepository()
	container.configure(
		profiles=profiles,
		contacts=InMemoryContactRepository(),
		recommendations=InMemoryRecommendationRepository(),
		mailer=mailer,
	)
	try:
		yield profiles
	finally:
		container.reset_memory_state()


@pytest_asyncio.fixture
async def api_client():
	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://testserver") as client:
		yield client
