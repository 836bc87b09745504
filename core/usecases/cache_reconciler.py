"""
캐시 반영 유즈케이스

가져온 멤버 목록으로 로컬 캐시를 전체 교체합니다.
업서트 → 오래된 항목 삭제 → 동기화 마커 갱신 순서로 진행합니다.
"""

from typing import List

from ..domain.entities import DirectoryAccount, SyncResult, utc_now
from ..domain.ports import AccountCacheRepositoryPort, LoggerPort


class CacheReconcileUseCase:
    """캐시 반영 유즈케이스"""

    def __init__(
        self,
        cache_repository: AccountCacheRepositoryPort,
        logger: LoggerPort,
    ):
        self.cache_repository = cache_repository
        self.logger = logger

    async def reconcile(self, accounts: List[DirectoryAccount]) -> SyncResult:
        """
        멤버 목록을 캐시에 반영합니다.

        개별 업서트 실패는 기록 후 건너뛰며, 동기화 마커는
        삭제 단계에서 오류가 나더라도 항상 갱신됩니다.

        Args:
            accounts: 디렉터리에서 가져온 계정 목록

        Returns:
            반영 결과 (synced는 업서트 성공 수)
        """
        result = SyncResult(fetched=len(accounts))
        self.logger.info(f"캐시 반영 시작: {len(accounts)}명")

        try:
            await self._apply(accounts, result)
        except Exception:
            # 반영 중 오류가 나도 마커는 갱신하고 원래 오류를 전파
            await self._update_marker(result, suppress_errors=True)
            raise

        await self._update_marker(result)

        self.logger.info(
            f"캐시 반영 완료: 성공 {result.synced}, 실패 {result.failed}, 삭제 {result.deleted}"
        )
        return result

    async def _apply(self, accounts: List[DirectoryAccount], result: SyncResult) -> None:
        """업서트 후 가져온 ID에 없는 캐시 항목을 삭제합니다."""
        for account in accounts:
            now = utc_now()
            try:
                await self.cache_repository.upsert(
                    account.id,
                    {
                        "email": account.email,
                        "display_name": account.display_name,
                        "last_synced_at": now,
                        "updated_at": now,
                    },
                )
                result.synced += 1
            except Exception as e:
                result.failed += 1
                self.logger.error(
                    f"캐시 업서트 실패: {account.id} ({account.email}) - {str(e)}",
                    external_id=account.id,
                )

        fetched_ids = {account.id for account in accounts}
        result.deleted = await self.cache_repository.delete_where_key_not_in(fetched_ids)

        if result.deleted > 0:
            self.logger.info(f"그룹에 없는 캐시 항목 삭제: {result.deleted}건")
        else:
            self.logger.debug("삭제할 캐시 항목 없음")

    async def _update_marker(self, result: SyncResult, suppress_errors: bool = False) -> None:
        """동기화 마커의 마지막 동기화 시각을 갱신합니다."""
        try:
            marker = await self.cache_repository.update_sync_marker({"last_synced_at": utc_now()})
        except Exception as e:
            self.logger.error(f"동기화 마커 갱신 실패: {str(e)}")
            if suppress_errors:
                return
            raise
        result.last_synced_at = marker.last_synced_at
