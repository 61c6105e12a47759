import pytest

from cpsconnect.alumni.domain.events import EventBus
from cpsconnect.alumni.domain.lifecycle import ProfileLifecycle
from cpsconnect.alumni.domain.models import AlumniStatus
from cpsconnect.alumni.domain.moderation import ModerationService
from cpsconnect.alumni.domain.policy import Conflict, PermissionDenied, ProfileNotFound, ValidationError
from cpsconnect.alumni.domain.rbac import Actor
from cpsconnect.alumni.domain.repository import InMemoryProfileRepository
from cpsconnect.infra.auth import AuthenticatedUser

ADMIN = Actor(id="admin-1", is_admin=True)
SUPERADMIN = Actor(id="root-1", is_admin=True, is_superadmin=True)
MEMBER = Actor(id="member-1")


@pytest.fixture
def repo() -> InMemoryProfileRepository:
	return InMemoryProfileRepository()


@pytest.fixture
def moderation(repo, clock) -> ModerationService:
	engine = ProfileLifecycle(repo, EventBus(), clock=clock)
	return ModerationService(engine, repo, lock_ttl_seconds=5, clock=clock)


async def _pending(moderation: ModerationService, uid: str, name: str = "Fatou") -> None:
	await moderation._lifecycle.create(uid, {"name": name, "email": f"{uid}@example.org", "year_promo": 2021}, submit=True)


def test_actor_from_authenticated_user() -> None:
	actor = Actor.from_user(AuthenticatedUser(id="u", email="u@example.org", display_name="U", roles=("superadmin",)))
	assert actor.is_superadmin and actor.is_admin and actor.can_moderate
	assert actor.email == "u@example.org"
	assert not Actor.from_user(AuthenticatedUser(id="v")).can_moderate


@pytest.mark.asyncio
async def test_approve_requires_admin(moderation) -> None:
	await _pending(moderation, "u1")
	with pytest.raises(PermissionDenied) as exc:
		await moderation.approve(MEMBER, "u1")
	assert exc.value.reason == "admin_required"
	profile = await moderation.approve(ADMIN, "u1")
	assert profile.status is AlumniStatus.APPROVED
	assert profile.validated_by == "admin-1"


@pytest.mark.asyncio
async def test_reject_requires_reason_before_locking(moderation, fake_redis) -> None:
	await _pending(moderation, "u1")
	with pytest.raises(ValidationError):
		await moderation.reject(ADMIN, "u1", "  ")
	assert await fake_redis.get("alumni:review:lock:u1") is None
	profile = await moderation.reject(SUPERADMIN, "u1", "Photo manquante")
	assert profile.rejection_reason == "Photo manquante"


@pytest.mark.asyncio
async def test_held_review_lock_fails_fast(moderation, fake_redis) -> None:
	await _pending(moderation, "u1")
	await fake_redis.set("alumni:review:lock:u1", "admin-2", ex=5)
	with pytest.raises(Conflict) as exc:
		await moderation.approve(ADMIN, "u1")
	assert exc.value.reason == "profile_locked"
	assert (await moderation._repository.get("u1")).status is AlumniStatus.PENDING


@pytest.mark.asyncio
async def test_lock_is_released_after_failure(moderation, fake_redis) -> None:
	with pytest.raises(ProfileNotFound):
		await moderation.approve(ADMIN, "ghost")
	assert await fake_redis.get("alumni:review:lock:ghost") is None


@pytest.mark.asyncio
async def test_delete_permissions(moderation, repo) -> None:
	for uid in ("victim", "other", "member-1"):
		await _pending(moderation, uid)

	with pytest.raises(PermissionDenied) as exc:
		await moderation.delete(ADMIN, "victim")
	assert exc.value.reason == "superadmin_required"
	assert await repo.get("victim") is not None

	await moderation.delete(SUPERADMIN, "victim")
	assert await repo.get("victim") is None

	await moderation.delete(MEMBER, "member-1")
	assert await repo.get("member-1") is None

	with pytest.raises(PermissionDenied):
		await moderation.delete(MEMBER, "other")


@pytest.mark.asyncio
async def test_queue_lists_by_status_newest_first(moderation, clock) -> None:
	await _pending(moderation, "first")
	clock.advance()
	await _pending(moderation, "second")
	clock.advance()
	await moderation._lifecycle.create("draft", {"name": "D", "email": "d@example.org", "year_promo": 2020})

	pending = await moderation.queue(ADMIN, AlumniStatus.PENDING)
	assert [profile.uid for profile in pending] == ["second", "first"]
	drafts = await moderation.queue(ADMIN, AlumniStatus.DRAFT)
	assert [profile.uid for profile in drafts] == ["draft"]

	await moderation.reject(ADMIN, "first", "à compléter")
	clock.advance()
	await moderation.reject(ADMIN, "second", "à compléter")
	rejected = await moderation.queue(ADMIN, AlumniStatus.REJECTED, limit=1)
	assert [profile.uid for profile in rejected] == ["second"]

	with pytest.raises(PermissionDenied):
		await moderation.queue(MEMBER)


@pytest.mark.asyncio
async def test_stats_counts_by_status(moderation) -> None:
	await _pending(moderation, "a")
	await _pending(moderation, "b")
	await moderation.approve(ADMIN, "a")
	stats = await moderation.stats(ADMIN)
	assert stats.total_profiles == 2
	assert stats.pending_profiles == 1
	assert stats.approved_profiles == 1
	assert stats.profiles_by_year == {2021: 2}
	with pytest.raises(PermissionDenied):
		await moderation.stats(MEMBER)
