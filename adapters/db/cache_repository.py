"""
디렉터리 계정 캐시 Repository 어댑터

AccountCacheRepositoryPort를 구현하는 SQLAlchemy 기반 어댑터입니다.
동기화 마커는 테이블의 첫 번째 레코드 하나만 사용합니다.
"""

import uuid
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from core.domain.entities import CachedAccountEntry, SyncConfigMarker, utc_now
from core.domain.ports import AccountCacheRepositoryPort, LoggerPort
from .models import DirectoryAccountCacheModel, DirectorySyncConfigModel

CACHE_FIELDS = ("email", "display_name", "last_synced_at", "updated_at")
MARKER_FIELDS = ("group_id", "group_name", "last_synced_at")


class AccountCacheRepositoryAdapter(AccountCacheRepositoryPort):
    """디렉터리 계정 캐시 Repository 어댑터"""

    def __init__(self, session: AsyncSession, logger: LoggerPort):
        self.session = session
        self.logger = logger

    async def upsert(self, external_id: str, fields: Dict) -> CachedAccountEntry:
        """external_id 기준으로 생성 또는 갱신합니다."""
        try:
            stmt = select(DirectoryAccountCacheModel).where(
                DirectoryAccountCacheModel.external_id == external_id
            )
            result = await self.session.execute(stmt)
            model = result.scalar_one_or_none()

            now = utc_now()
            if model:
                for key in CACHE_FIELDS:
                    if key in fields:
                        setattr(model, key, fields[key])
                model.updated_at = fields.get("updated_at") or now
            else:
                model = DirectoryAccountCacheModel(
                    id=str(uuid.uuid4()),
                    external_id=external_id,
                    email=fields["email"],
                    display_name=fields.get("display_name") or "",
                    last_synced_at=fields.get("last_synced_at") or now,
                    created_at=now,
                    updated_at=now,
                )
                self.session.add(model)

            await self.session.commit()
            await self.session.refresh(model)
        except Exception:
            # 실패한 트랜잭션이 다음 업서트에 영향을 주지 않도록 롤백
            await self.session.rollback()
            raise

        return self._cache_model_to_entity(model)

    async def delete_where_key_not_in(self, external_ids: Iterable[str]) -> int:
        """주어진 ID 집합에 없는 캐시 항목을 삭제합니다."""
        keep_ids = list(set(external_ids))

        stmt = delete(DirectoryAccountCacheModel)
        if keep_ids:
            stmt = stmt.where(DirectoryAccountCacheModel.external_id.notin_(keep_ids))

        try:
            result = await self.session.execute(stmt)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        deleted_count = result.rowcount or 0
        self.logger.debug(f"캐시 항목 삭제: {deleted_count}건")
        return deleted_count

    async def update_sync_marker(self, fields: Dict) -> SyncConfigMarker:
        """동기화 마커를 갱신합니다. 없으면 생성합니다."""
        model = await self._get_marker_model()
        now = utc_now()

        if model is None:
            model = DirectorySyncConfigModel(id=str(uuid.uuid4()), created_at=now)
            self.session.add(model)

        for key in MARKER_FIELDS:
            if key in fields:
                setattr(model, key, fields[key])
        model.updated_at = now

        await self.session.commit()
        await self.session.refresh(model)

        return self._marker_model_to_entity(model)

    async def get_sync_marker(self) -> Optional[SyncConfigMarker]:
        """동기화 마커를 조회합니다."""
        model = await self._get_marker_model()
        if model is None:
            return None
        return self._marker_model_to_entity(model)

    async def save_group_config(self, group_id: str, group_name: str) -> SyncConfigMarker:
        """동기화 대상 그룹을 저장합니다."""
        marker = await self.update_sync_marker({"group_id": group_id, "group_name": group_name})
        self.logger.debug(f"동기화 대상 그룹 저장: {group_id}")
        return marker

    async def get_by_external_id(self, external_id: str) -> Optional[CachedAccountEntry]:
        """디렉터리 객체 ID로 캐시 항목을 조회합니다."""
        stmt = select(DirectoryAccountCacheModel).where(
            DirectoryAccountCacheModel.external_id == external_id
        )
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()

        if model is None:
            return None

        return self._cache_model_to_entity(model)

    async def list_entries(self, skip: int = 0, limit: int = 100) -> List[CachedAccountEntry]:
        """캐시 항목 목록을 표시 이름 순으로 조회합니다."""
        stmt = (
            select(DirectoryAccountCacheModel)
            .order_by(DirectoryAccountCacheModel.display_name, DirectoryAccountCacheModel.email)
            .offset(skip)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        models = result.scalars().all()

        return [self._cache_model_to_entity(model) for model in models]

    async def count_entries(self) -> int:
        """캐시 항목 수를 조회합니다."""
        stmt = select(func.count()).select_from(DirectoryAccountCacheModel)
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def _get_marker_model(self) -> Optional[DirectorySyncConfigModel]:
        stmt = (
            select(DirectorySyncConfigModel)
            .order_by(DirectorySyncConfigModel.created_at)
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    def _cache_model_to_entity(self, model: DirectoryAccountCacheModel) -> CachedAccountEntry:
        """모델을 엔티티로 변환합니다."""
        return CachedAccountEntry(
            id=UUID(model.id),
            external_id=model.external_id,
            email=model.email,
            display_name=model.display_name or "",
            last_synced_at=model.last_synced_at,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _marker_model_to_entity(self, model: DirectorySyncConfigModel) -> SyncConfigMarker:
        """모델을 엔티티로 변환합니다."""
        return SyncConfigMarker(
            id=UUID(model.id),
            group_id=model.group_id,
            group_name=model.group_name,
            last_synced_at=model.last_synced_at,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
