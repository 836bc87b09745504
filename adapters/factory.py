"""
어댑터 팩토리

모든 어댑터들을 생성하고 의존성을 주입하는 팩토리 클래스입니다.
클린 아키텍처의 의존성 역전 원칙을 구현합니다.
"""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from core.domain.ports import (
    AccountCacheRepositoryPort,
    ConfigPort,
    CredentialProviderPort,
    DirectoryClientPort,
    LoggerPort,
)
from core.usecases.cache_reconciler import CacheReconcileUseCase
from core.usecases.directory_sync import DirectorySyncUseCase
from core.usecases.member_fetcher import MemberFetchUseCase

from .db.cache_repository import AccountCacheRepositoryAdapter
from .external.credential_provider import ClientCredentialProviderAdapter
from .external.graph_api_client import GraphDirectoryClientAdapter
from .logger import LoggerAdapter
from config.adapters import get_config


class AdapterFactory:
    """어댑터 팩토리"""

    def __init__(self, config: Optional[ConfigPort] = None):
        self.config = config or get_config()
        self._logger: Optional[LoggerPort] = None
        self._directory_client: Optional[DirectoryClientPort] = None
        self._credential_provider: Optional[CredentialProviderPort] = None

    def create_logger(self) -> LoggerPort:
        """로거 어댑터를 생성합니다."""
        if self._logger is None:
            self._logger = LoggerAdapter(
                name="directory_sync",
                level=self.config.get_log_level(),
                format_string=self.config.get_log_format(),
            )
        return self._logger

    def create_directory_client(self) -> DirectoryClientPort:
        """Graph 디렉터리 클라이언트 어댑터를 생성합니다."""
        if self._directory_client is None:
            self._directory_client = GraphDirectoryClientAdapter(
                logger=self.create_logger(),
                base_url=self.config.get_graph_base_url(),
                timeout=self.config.get_graph_timeout_seconds(),
            )
        return self._directory_client

    def create_credential_provider(self) -> CredentialProviderPort:
        """앱 자격 증명 제공자 어댑터를 생성합니다."""
        if self._credential_provider is None:
            self._credential_provider = ClientCredentialProviderAdapter(
                config=self.config,
                logger=self.create_logger(),
            )
        return self._credential_provider

    def create_cache_repository(self, session: AsyncSession) -> AccountCacheRepositoryPort:
        """계정 캐시 Repository 어댑터를 생성합니다."""
        return AccountCacheRepositoryAdapter(session, self.create_logger())

    def create_member_fetch_usecase(self) -> MemberFetchUseCase:
        """멤버 페치 유즈케이스를 생성합니다."""
        return MemberFetchUseCase(
            directory_client=self.create_directory_client(),
            logger=self.create_logger(),
            max_retries=self.config.get_sync_max_retries(),
            base_delay_ms=self.config.get_sync_base_delay_ms(),
        )

    def create_directory_sync_usecase(self, session: AsyncSession) -> DirectorySyncUseCase:
        """디렉터리 동기화 유즈케이스를 생성합니다."""
        cache_repository = self.create_cache_repository(session)
        logger = self.create_logger()

        return DirectorySyncUseCase(
            credential_provider=self.create_credential_provider(),
            directory_client=self.create_directory_client(),
            member_fetcher=self.create_member_fetch_usecase(),
            cache_reconciler=CacheReconcileUseCase(cache_repository, logger),
            cache_repository=cache_repository,
            logger=logger,
        )

    def get_config(self) -> ConfigPort:
        """설정 객체를 반환합니다."""
        return self.config


# 전역 팩토리 인스턴스
_factory: Optional[AdapterFactory] = None


def get_adapter_factory() -> AdapterFactory:
    """전역 어댑터 팩토리 인스턴스를 반환합니다."""
    global _factory
    if _factory is None:
        _factory = AdapterFactory()
    return _factory
