"""Shared fixtures: in-memory fakes of the ports and an aiosqlite session."""

import os
from typing import Dict, Iterable, List, Optional

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

os.environ.setdefault("ENVIRONMENT", "testing")

from core.domain.entities import (  # noqa: E402
    CachedAccountEntry,
    DirectoryPage,
    GroupInfo,
    SyncConfigMarker,
    utc_now,
)
from core.domain.ports import (  # noqa: E402
    AccountCacheRepositoryPort,
    CredentialProviderPort,
    DirectoryClientPort,
    LoggerPort,
)
from adapters.db.models import Base  # noqa: E402


class RecordingLogger(LoggerPort):
    def __init__(self):
        self.records = []

    def info(self, message: str, **kwargs) -> None:
        self.records.append(("info", message))

    def warning(self, message: str, **kwargs) -> None:
        self.records.append(("warning", message))

    def error(self, message: str, **kwargs) -> None:
        self.records.append(("error", message))

    def debug(self, message: str, **kwargs) -> None:
        self.records.append(("debug", message))

    def messages(self, level: str) -> List[str]:
        return [message for record_level, message in self.records if record_level == level]


class FakeDirectoryClient(DirectoryClientPort):
    """Scripted responses per resource path; an exhausted path behaves like a 404."""

    def __init__(self):
        self.responses: Dict[str, list] = {}
        self.groups: Dict[str, object] = {}
        self.users: Dict[str, object] = {}
        self.fetch_calls: List[tuple] = []
        self.group_calls: List[str] = []
        self.user_calls: List[str] = []

    def script(self, resource_path: str, *results) -> None:
        self.responses.setdefault(resource_path, []).extend(results)

    async def fetch(self, resource_path, access_token, field_selector=None) -> Optional[DirectoryPage]:
        self.fetch_calls.append((resource_path, field_selector))
        queue = self.responses.get(resource_path)
        if not queue:
            return None
        result = queue.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    async def get_group(self, group_id, access_token) -> Optional[GroupInfo]:
        self.group_calls.append(group_id)
        result = self.groups.get(group_id)
        if isinstance(result, Exception):
            raise result
        return result

    async def get_user(self, user_id, access_token, field_selector=None) -> Optional[Dict]:
        self.user_calls.append(user_id)
        result = self.users.get(user_id)
        if isinstance(result, Exception):
            raise result
        return result


class FakeCredentialProvider(CredentialProviderPort):
    def __init__(self, token: Optional[str] = None, missing: Optional[List[str]] = None):
        self.token = token
        self.missing = missing if missing is not None else []
        self.calls = 0

    async def get_service_credential(self) -> Optional[str]:
        self.calls += 1
        return self.token

    def get_missing_settings(self) -> List[str]:
        return list(self.missing)


class InMemoryCacheRepository(AccountCacheRepositoryPort):
    def __init__(self):
        self.entries: Dict[str, CachedAccountEntry] = {}
        self.marker: Optional[SyncConfigMarker] = None
        self.failing_ids = set()
        self.delete_error: Optional[Exception] = None
        self.marker_error: Optional[Exception] = None
        self.upsert_calls: List[str] = []

    def seed(self, external_id: str, email: str, display_name: str = "") -> None:
        self.entries[external_id] = CachedAccountEntry(
            external_id=external_id, email=email, display_name=display_name
        )

    async def upsert(self, external_id: str, fields: Dict) -> CachedAccountEntry:
        self.upsert_calls.append(external_id)
        if external_id in self.failing_ids:
            raise RuntimeError(f"write failed for {external_id}")

        existing = self.entries.get(external_id)
        if existing:
            entry = existing.model_copy(update=fields)
        else:
            entry = CachedAccountEntry(external_id=external_id, **fields)
        self.entries[external_id] = entry
        return entry

    async def delete_where_key_not_in(self, external_ids: Iterable[str]) -> int:
        if self.delete_error:
            raise self.delete_error
        keep = set(external_ids)
        stale = [key for key in self.entries if key not in keep]
        for key in stale:
            del self.entries[key]
        return len(stale)

    async def update_sync_marker(self, fields: Dict) -> SyncConfigMarker:
        if self.marker_error:
            raise self.marker_error
        if self.marker is None:
            self.marker = SyncConfigMarker()
        self.marker = self.marker.model_copy(update={**fields, "updated_at": utc_now()})
        return self.marker

    async def get_sync_marker(self) -> Optional[SyncConfigMarker]:
        return self.marker

    async def save_group_config(self, group_id: str, group_name: str) -> SyncConfigMarker:
        return await self.update_sync_marker({"group_id": group_id, "group_name": group_name})

    async def get_by_external_id(self, external_id: str) -> Optional[CachedAccountEntry]:
        return self.entries.get(external_id)

    async def list_entries(self, skip: int = 0, limit: int = 100) -> List[CachedAccountEntry]:
        return list(self.entries.values())[skip:skip + limit]

    async def count_entries(self) -> int:
        return len(self.entries)


class RecordingSleep:
    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def user(user_id: str, mail: Optional[str] = None, **fields) -> Dict:
    record = {"@odata.type": "#microsoft.graph.user", "id": user_id}
    if mail is not None:
        record["mail"] = mail
    record.update(fields)
    return record


def page(*items, next_cursor: Optional[str] = None) -> DirectoryPage:
    return DirectoryPage(items=list(items), next_cursor=next_cursor)


@pytest.fixture
def logger():
    return RecordingLogger()


@pytest.fixture
def directory_client():
    return FakeDirectoryClient()


@pytest.fixture
def cache_repository():
    return InMemoryCacheRepository()


@pytest.fixture
def sleeper():
    return RecordingSleep()


@pytest_asyncio.fixture
async def db_session():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()
