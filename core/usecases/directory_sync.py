"""
디렉터리 동기화 유즈케이스

자격 증명 확인 → 그룹 접근 확인 → 멤버 페치 → 캐시 반영 순서로
그룹 멤버 동기화를 수행합니다. 실패 시 롤백하지 않습니다.
"""

from typing import List, Optional

from ..domain.entities import CachedAccountEntry, GroupInfo, SyncConfigMarker, SyncResult
from ..domain.exceptions import (
    ConfigurationError,
    DirectoryForbiddenError,
    DirectoryNotFoundError,
)
from ..domain.ports import (
    AccountCacheRepositoryPort,
    CredentialProviderPort,
    DirectoryClientPort,
    LoggerPort,
)
from .cache_reconciler import CacheReconcileUseCase
from .member_fetcher import MemberFetchUseCase

REQUIRED_PERMISSIONS = ("GroupMember.Read.All", "Group.Read.All", "User.Read.All")


class DirectorySyncUseCase:
    """디렉터리 그룹 멤버 동기화 유즈케이스"""

    def __init__(
        self,
        credential_provider: CredentialProviderPort,
        directory_client: DirectoryClientPort,
        member_fetcher: MemberFetchUseCase,
        cache_reconciler: CacheReconcileUseCase,
        cache_repository: AccountCacheRepositoryPort,
        logger: LoggerPort,
    ):
        self.credential_provider = credential_provider
        self.directory_client = directory_client
        self.member_fetcher = member_fetcher
        self.cache_reconciler = cache_reconciler
        self.cache_repository = cache_repository
        self.logger = logger

    async def sync_group(self, group_id: str, fallback_credential: Optional[str] = None) -> int:
        """
        그룹 멤버를 캐시에 동기화합니다.

        Args:
            group_id: 디렉터리 그룹 ID
            fallback_credential: 앱 자격 증명이 없을 때 사용할 사용자 토큰

        Returns:
            업서트에 성공한 계정 수

        Raises:
            ConfigurationError: 사용할 수 있는 자격 증명이 없는 경우
            DirectoryNotFoundError: 그룹이 없거나 접근할 수 없는 경우
            DirectoryForbiddenError: 그룹 또는 멤버 조회 권한이 없는 경우
            RetryLimitExceededError: 스로틀링 재시도 한도를 넘은 경우
        """
        result = await self.sync_group_detailed(group_id, fallback_credential)
        return result.synced

    async def sync_group_detailed(
        self,
        group_id: str,
        fallback_credential: Optional[str] = None,
    ) -> SyncResult:
        """sync_group과 같은 과정을 수행하고 상세 결과를 반환합니다."""
        self.logger.info(f"그룹 동기화 시작: {group_id}")

        access_token = await self.resolve_credential(fallback_credential)
        group = await self._verify_group(group_id, access_token)

        accounts = await self.member_fetcher.fetch_all_members(group.id, access_token)
        result = await self.cache_reconciler.reconcile(accounts)

        statistics = self.member_fetcher.last_statistics
        self.logger.info(
            f"그룹 동기화 완료: {group.display_name}, 동기화 {result.synced}명, 삭제 {result.deleted}건",
            group_id=group_id,
            pages=statistics.pages_fetched,
            throttle_retries=statistics.throttle_retries,
        )
        return result

    async def sync_configured_group(self, fallback_credential: Optional[str] = None) -> SyncResult:
        """
        설정된 그룹을 동기화합니다.

        Raises:
            ConfigurationError: 동기화 대상 그룹이 설정되지 않은 경우
        """
        marker = await self.cache_repository.get_sync_marker()
        if marker is None or not marker.is_configured():
            raise ConfigurationError(
                "동기화 대상 그룹이 설정되지 않았습니다. 먼저 그룹을 설정하세요 (sync configure)."
            )

        return await self.sync_group_detailed(marker.group_id, fallback_credential)

    async def configure_group(
        self,
        group_id: str,
        fallback_credential: Optional[str] = None,
    ) -> SyncConfigMarker:
        """
        동기화 대상 그룹을 검증하고 저장합니다.

        Args:
            group_id: 디렉터리 그룹 ID
            fallback_credential: 앱 자격 증명이 없을 때 사용할 사용자 토큰

        Returns:
            저장된 동기화 설정
        """
        self.logger.info(f"동기화 대상 그룹 설정: {group_id}")

        access_token = await self.resolve_credential(fallback_credential)
        group = await self._verify_group(group_id, access_token)

        marker = await self.cache_repository.save_group_config(group.id, group.display_name)
        self.logger.info(f"동기화 대상 그룹 저장 완료: {group.display_name} ({group.id})")
        return marker

    async def get_sync_status(self) -> Optional[SyncConfigMarker]:
        """현재 동기화 설정과 마지막 동기화 시각을 조회합니다."""
        return await self.cache_repository.get_sync_marker()

    async def list_cached_accounts(self, skip: int = 0, limit: int = 100) -> List[CachedAccountEntry]:
        """캐시된 계정 목록을 조회합니다."""
        return await self.cache_repository.list_entries(skip=skip, limit=limit)

    async def resolve_credential(self, fallback_credential: Optional[str] = None) -> str:
        """
        사용할 액세스 토큰을 결정합니다.

        앱 자격 증명(app-only)을 우선 사용하고, 없으면 전달된 사용자 토큰을 사용합니다.

        Raises:
            ConfigurationError: 두 가지 모두 사용할 수 없는 경우
        """
        service_credential = await self.credential_provider.get_service_credential()
        if service_credential:
            self.logger.debug("애플리케이션(app-only) 토큰 사용")
            return service_credential

        if fallback_credential:
            self.logger.warning(
                "애플리케이션 토큰을 사용할 수 없어 사용자 토큰으로 대체합니다. "
                "사용자에게 그룹 멤버 조회 권한이 없으면 동기화가 실패할 수 있습니다."
            )
            return fallback_credential

        missing = self.credential_provider.get_missing_settings()
        message = self._build_credential_error(missing)
        self.logger.error(message)
        raise ConfigurationError(message)

    async def _verify_group(self, group_id: str, access_token: str) -> GroupInfo:
        """그룹 접근 가능 여부를 확인합니다."""
        try:
            group = await self.directory_client.get_group(group_id, access_token)
        except DirectoryForbiddenError as e:
            message = (
                f"그룹 접근이 거부되었습니다: {group_id}. "
                f"애플리케이션에 Group.Read.All 권한이 부여되었는지 확인하세요."
            )
            self.logger.error(message)
            raise DirectoryForbiddenError(message, resource=e.resource) from e

        if group is None:
            message = f"그룹을 찾을 수 없거나 접근할 수 없습니다: {group_id}"
            self.logger.error(message)
            raise DirectoryNotFoundError(message, resource=f"/groups/{group_id}")

        return group

    @staticmethod
    def _build_credential_error(missing_settings: List[str]) -> str:
        lines = ["디렉터리 동기화에 사용할 자격 증명이 없습니다."]
        if missing_settings:
            lines.append(f"설정되지 않은 환경 변수: {', '.join(missing_settings)}")
        lines.append(f"필요한 애플리케이션 권한: {', '.join(REQUIRED_PERMISSIONS)}")
        lines.append("Azure Portal에서 위 권한에 대한 관리자 동의(admin consent)를 부여해야 합니다.")
        return "\n".join(lines)
