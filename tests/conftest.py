# tests/conftest.py
# Doubles en mémoire (stores, stockage objet, horloge) partagés par les tests.

import datetime as dt
from typing import Any

import pytest
from bson import ObjectId

from kickstart.core.errors import BlobStoreError, PersistenceError, TaskNotFound
from kickstart.models.session import SessionLogEntry
from kickstart.models.task import Task

NOW = dt.datetime(2026, 3, 10, 14, 30, tzinfo=dt.timezone.utc)


class FixedClock:
    def __init__(self, now: dt.datetime = NOW):
        self.now = now

    def __call__(self) -> dt.datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + dt.timedelta(**kwargs)


class InMemoryTaskStore:
    def __init__(self):
        self.tasks: dict[ObjectId, Task] = {}
        self.fail_insert = False
        self.fail_update = False
        self.insert_calls = 0
        self.update_calls = 0

    async def insert_task(self, task: Task) -> Task:
        self.insert_calls += 1
        if self.fail_insert:
            raise PersistenceError("store offline")
        stored = task.model_copy(update={"id": ObjectId()})
        self.tasks[stored.id] = stored
        return stored

    async def get_task(self, task_id, owner_id) -> Task:
        task = self.tasks.get(task_id)
        if task is None or task.owner_id != owner_id:
            raise TaskNotFound("Task not found")
        return task

    async def list_tasks(self, owner_id) -> list[Task]:
        owned = [t for t in self.tasks.values() if t.owner_id == owner_id]
        return sorted(owned, key=lambda t: t.created_at, reverse=True)

    async def update_task(self, task_id, owner_id, patch: dict[str, Any]) -> Task:
        self.update_calls += 1
        if self.fail_update:
            raise PersistenceError("store offline")
        task = await self.get_task(task_id, owner_id)
        patch = dict(patch)
        if "completed_topics" in patch:
            # même sémantique que le $max de MongoTaskStore
            patch["completed_topics"] = max(patch["completed_topics"], task.completed_topics)
        updated = task.model_copy(update=patch)
        self.tasks[task_id] = updated
        return updated


class InMemoryBlobStore:
    def __init__(self):
        self.objects: dict[tuple[str, str], bytes] = {}
        self.fail_buckets: set[str] = set()
        self.calls: list[tuple[str, str]] = []

    async def upload(self, bucket: str, name: str, data: bytes, content_type: str) -> str:
        self.calls.append((bucket, name))
        if bucket in self.fail_buckets:
            raise BlobStoreError(f"bucket {bucket} unavailable")
        self.objects[(bucket, name)] = data
        return f"https://blobs.test/{bucket}/{name}"


class InMemorySessionLogStore:
    def __init__(self):
        self.entries: list[SessionLogEntry] = []
        self.fail_append = False

    async def append(self, entry: SessionLogEntry) -> SessionLogEntry:
        if self.fail_append:
            raise PersistenceError("log offline")
        stored = entry.model_copy(update={"id": ObjectId()})
        self.entries.append(stored)
        return stored

    async def list_completed_at(self, owner_id) -> list[dt.datetime]:
        return sorted(
            (e.completed_at for e in self.entries if e.owner_id == owner_id),
            reverse=True,
        )


def make_task(owner_id: ObjectId, **overrides) -> Task:
    data = dict(
        id=ObjectId(),
        owner_id=owner_id,
        title="OS Basics",
        description="Learn OS fundamentals",
        intent_text="I want to pass my exam",
        content_kind="link",
        content_link="https://example.com/os",
        total_topics=10,
        completed_topics=0,
        created_at=NOW,
        next_study_date=NOW,
    )
    data.update(overrides)
    return Task(**data)


@pytest.fixture
def owner_id() -> ObjectId:
    return ObjectId()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def task_store() -> InMemoryTaskStore:
    return InMemoryTaskStore()


@pytest.fixture
def blob_store() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
def session_logs() -> InMemorySessionLogStore:
    return InMemorySessionLogStore()


@pytest.fixture
def stored_task(task_store, owner_id) -> Task:
    """Tâche 7/10 déjà présente dans le store."""
    task = make_task(owner_id, completed_topics=7)
    task_store.tasks[task.id] = task
    return task
