import asyncio

import pytest

from app.database.memory_storage import MemoryStorage
from app.schemas.records import ProjectCreate, UserCreate, UserPatch
from app.services.generation_service import GenerationService
from app.utils.exceptions import GenerationError, InsufficientCreditsError, NotFoundError, ValidationError
from tests.conftest import SAMPLE_ARTIFACT, FakeGenerator

pytestmark = pytest.mark.anyio


async def _seed(storage: MemoryStorage, credits: int = 100):
    user = await storage.users.create(UserCreate(username="ada", email="ada@example.com", credits=credits))
    project = await storage.projects.create(ProjectCreate(user_id=user.id, name="Shop", description="A shop app"))
    return user, project


async def test_successful_generation_charges_fixed_cost():
    storage = MemoryStorage()
    user, project = await _seed(storage)
    service = GenerationService(storage, FakeGenerator(), credit_cost=10)

    generation = await service.generate(project.id, user.id, "A shop app", theme="dark", language="ar")

    assert generation.status == "completed"
    assert generation.credits_used == 10
    assert generation.generated_code == SAMPLE_ARTIFACT
    assert generation.error_message is None
    assert (await storage.users.get(user.id)).credits == 90
    stored_project = await storage.projects.get(project.id)
    assert stored_project.status == "completed"
    assert stored_project.generated_code == SAMPLE_ARTIFACT


async def test_generator_receives_theme_and_language():
    storage = MemoryStorage()
    user, project = await _seed(storage)
    generator = FakeGenerator()

    await GenerationService(storage, generator).generate(project.id, user.id, "Recipes", theme="dark", language="ar")

    assert generator.calls == [("Recipes", "dark", "ar")]


async def test_insufficient_credits_performs_no_writes():
    storage = MemoryStorage()
    user, project = await _seed(storage, credits=5)
    generator = FakeGenerator()
    service = GenerationService(storage, generator, credit_cost=10)

    with pytest.raises(InsufficientCreditsError) as exc_info:
        await service.generate(project.id, user.id, "A shop app")

    assert exc_info.value.details == {"required": 10, "available": 5}
    assert await storage.generations.list_by("project_id", project.id) == []
    assert (await storage.users.get(user.id)).credits == 5
    assert (await storage.projects.get(project.id)).status == "draft"
    assert generator.calls == []


async def test_unknown_user_is_treated_as_insufficient_credits():
    storage = MemoryStorage()
    _, project = await _seed(storage)

    with pytest.raises(InsufficientCreditsError):
        await GenerationService(storage, FakeGenerator()).generate(project.id, "ghost", "A shop app")


async def test_missing_fields_are_reported():
    storage = MemoryStorage()
    service = GenerationService(storage, FakeGenerator())

    with pytest.raises(ValidationError) as exc_info:
        await service.generate(None, "u1", "  ")

    assert exc_info.value.details == {"fields": ["projectId", "prompt"]}


async def test_unknown_project_is_not_found():
    storage = MemoryStorage()
    user, _ = await _seed(storage)

    with pytest.raises(NotFoundError):
        await GenerationService(storage, FakeGenerator()).generate("missing", user.id, "A shop app")
    assert (await storage.users.get(user.id)).credits == 100


async def test_project_of_another_user_is_rejected():
    storage = MemoryStorage()
    _, project = await _seed(storage)
    other = await storage.users.create(UserCreate(username="bob", email="bob@example.com"))

    with pytest.raises(ValidationError):
        await GenerationService(storage, FakeGenerator()).generate(project.id, other.id, "A shop app")
    assert await storage.generations.list_by("project_id", project.id) == []


async def test_failed_call_records_error_and_changes_nothing_else():
    storage = MemoryStorage()
    user, project = await _seed(storage)
    generator = FakeGenerator()
    generator.error = GenerationError("Empty response from Gemini model")
    service = GenerationService(storage, generator)

    with pytest.raises(GenerationError) as exc_info:
        await service.generate(project.id, user.id, "A shop app")

    [generation] = await storage.generations.list_by("project_id", project.id)
    assert exc_info.value.details == {"generationId": generation.id}
    assert generation.status == "error"
    assert generation.error_message == "Empty response from Gemini model"
    assert generation.generated_code is None
    assert generation.credits_used == 0
    assert (await storage.users.get(user.id)).credits == 100
    stored_project = await storage.projects.get(project.id)
    assert stored_project.status == "draft"
    assert stored_project.generated_code is None


async def test_unexpected_failure_still_ends_in_error_state():
    storage = MemoryStorage()
    user, project = await _seed(storage)
    generator = FakeGenerator()
    generator.error = RuntimeError("socket closed")

    with pytest.raises(RuntimeError):
        await GenerationService(storage, generator).generate(project.id, user.id, "A shop app")

    [generation] = await storage.generations.list_by("project_id", project.id)
    assert generation.status == "error"
    assert generation.error_message == "socket closed"


async def test_generation_is_pending_while_the_call_runs():
    storage = MemoryStorage()
    user, project = await _seed(storage)
    generator = FakeGenerator()
    seen = []

    async def inspect():
        seen.extend(await storage.generations.list_by("project_id", project.id))

    generator.before_return = inspect
    await GenerationService(storage, generator).generate(project.id, user.id, "A shop app")

    assert [g.status for g in seen] == ["pending"]


async def test_cancelled_call_is_recorded_as_error():
    storage = MemoryStorage()
    user, project = await _seed(storage)
    generator = FakeGenerator()
    started = asyncio.Event()

    async def hang():
        started.set()
        await asyncio.sleep(60)

    generator.before_return = hang
    task = asyncio.create_task(GenerationService(storage, generator).generate(project.id, user.id, "A shop app"))
    await started.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    [generation] = await storage.generations.list_by("project_id", project.id)
    assert generation.status == "error"
    assert (await storage.users.get(user.id)).credits == 100


async def test_concurrent_requests_cannot_overdraw():
    storage = MemoryStorage()
    user, project = await _seed(storage, credits=15)
    generator = FakeGenerator()

    async def yield_control():
        await asyncio.sleep(0.01)

    generator.before_return = yield_control
    service = GenerationService(storage, generator, credit_cost=10)

    results = await asyncio.gather(
        service.generate(project.id, user.id, "first"),
        service.generate(project.id, user.id, "second"),
        return_exceptions=True,
    )

    assert sorted(type(r).__name__ for r in results) == ["Generation", "InsufficientCreditsError"]
    assert (await storage.users.get(user.id)).credits == 5
    assert len(await storage.generations.list_by("project_id", project.id)) == 1


async def test_debit_applies_to_balance_changed_during_the_call():
    storage = MemoryStorage()
    user, project = await _seed(storage)
    generator = FakeGenerator()

    async def top_up():
        await storage.users.update(user.id, UserPatch(credits=500))

    generator.before_return = top_up
    await GenerationService(storage, generator, credit_cost=10).generate(project.id, user.id, "A shop app")

    assert (await storage.users.get(user.id)).credits == 490
