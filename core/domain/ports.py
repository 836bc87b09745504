"""
포트 인터페이스 정의

클린 아키텍처의 핵심으로, Core 레이어와 외부 어댑터 간의 계약을 정의합니다.
모든 포트는 추상 기본 클래스(ABC)로 정의되어 구현을 강제합니다.
"""

from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

from .entities import (
    CachedAccountEntry,
    DirectoryPage,
    GroupInfo,
    SyncConfigMarker,
)


class DirectoryClientPort(ABC):
    """디렉터리(Microsoft Graph) API 클라이언트 포트"""

    @abstractmethod
    async def fetch(
        self,
        resource_path: str,
        access_token: str,
        field_selector: Optional[str] = None,
    ) -> Optional[DirectoryPage]:
        """
        리소스 경로 또는 연속 커서로 한 페이지를 조회합니다.

        404는 None을 반환하고, 403/429/기타 오류는 분류된 예외를 발생시킵니다.
        """
        pass

    @abstractmethod
    async def get_group(self, group_id: str, access_token: str) -> Optional[GroupInfo]:
        """그룹 메타데이터 조회 (404이면 None)"""
        pass

    @abstractmethod
    async def get_user(
        self,
        user_id: str,
        access_token: str,
        field_selector: Optional[str] = None,
    ) -> Optional[Dict]:
        """개별 사용자 조회 (404이면 None)"""
        pass


class CredentialProviderPort(ABC):
    """애플리케이션 자격 증명 제공자 포트"""

    @abstractmethod
    async def get_service_credential(self) -> Optional[str]:
        """애플리케이션(app-only) 액세스 토큰 조회, 사용할 수 없으면 None"""
        pass

    @abstractmethod
    def get_missing_settings(self) -> List[str]:
        """자격 증명 발급에 필요하지만 설정되지 않은 항목 목록"""
        pass


class AccountCacheRepositoryPort(ABC):
    """디렉터리 계정 캐시 저장소 포트"""

    @abstractmethod
    async def upsert(self, external_id: str, fields: Dict) -> CachedAccountEntry:
        """external_id 기준으로 캐시 항목 생성 또는 갱신"""
        pass

    @abstractmethod
    async def delete_where_key_not_in(self, external_ids: Iterable[str]) -> int:
        """주어진 ID 집합에 없는 캐시 항목 삭제, 삭제된 개수 반환"""
        pass

    @abstractmethod
    async def update_sync_marker(self, fields: Dict) -> SyncConfigMarker:
        """동기화 마커 갱신 (없으면 생성)"""
        pass

    @abstractmethod
    async def get_sync_marker(self) -> Optional[SyncConfigMarker]:
        """동기화 마커 조회"""
        pass

    @abstractmethod
    async def save_group_config(self, group_id: str, group_name: str) -> SyncConfigMarker:
        """동기화 대상 그룹 설정 저장"""
        pass

    @abstractmethod
    async def get_by_external_id(self, external_id: str) -> Optional[CachedAccountEntry]:
        """디렉터리 객체 ID로 캐시 항목 조회"""
        pass

    @abstractmethod
    async def list_entries(self, skip: int = 0, limit: int = 100) -> List[CachedAccountEntry]:
        """캐시 항목 목록 조회"""
        pass

    @abstractmethod
    async def count_entries(self) -> int:
        """캐시 항목 수 조회"""
        pass


class LoggerPort(ABC):
    """로거 포트"""

    @abstractmethod
    def info(self, message: str, **kwargs) -> None:
        """정보 로그"""
        pass

    @abstractmethod
    def warning(self, message: str, **kwargs) -> None:
        """경고 로그"""
        pass

    @abstractmethod
    def error(self, message: str, **kwargs) -> None:
        """오류 로그"""
        pass

    @abstractmethod
    def debug(self, message: str, **kwargs) -> None:
        """디버그 로그"""
        pass


class ConfigPort(ABC):
    """설정 포트"""

    # 환경 설정
    @abstractmethod
    def get_environment(self) -> str:
        """환경 조회 (development, production, testing)"""
        pass

    @abstractmethod
    def is_debug(self) -> bool:
        """디버그 모드 여부"""
        pass

    # 데이터베이스 설정
    @abstractmethod
    def get_database_url(self) -> str:
        """데이터베이스 URL 조회"""
        pass

    # Microsoft Azure 설정
    @abstractmethod
    def get_azure_client_id(self) -> Optional[str]:
        """Azure 클라이언트 ID 조회"""
        pass

    @abstractmethod
    def get_azure_client_secret(self) -> Optional[str]:
        """Azure 클라이언트 시크릿 조회"""
        pass

    @abstractmethod
    def get_azure_tenant_id(self) -> Optional[str]:
        """Azure 테넌트 ID 조회"""
        pass

    # Graph API 설정
    @abstractmethod
    def get_graph_base_url(self) -> str:
        """Graph API 베이스 URL 조회"""
        pass

    @abstractmethod
    def get_graph_auth_url(self) -> str:
        """토큰 발급 엔드포인트 베이스 URL 조회"""
        pass

    @abstractmethod
    def get_graph_timeout_seconds(self) -> float:
        """Graph API 요청 타임아웃(초) 조회"""
        pass

    # 동기화 설정
    @abstractmethod
    def get_sync_max_retries(self) -> int:
        """페이지당 스로틀링 최대 재시도 횟수"""
        pass

    @abstractmethod
    def get_sync_base_delay_ms(self) -> int:
        """지수 백오프 기본 지연(ms)"""
        pass

    @abstractmethod
    def get_sync_group_id(self) -> Optional[str]:
        """기본 동기화 대상 그룹 ID"""
        pass

    # 로깅 설정
    @abstractmethod
    def get_log_level(self) -> str:
        """로그 레벨 조회"""
        pass

    @abstractmethod
    def get_log_format(self) -> str:
        """로그 포맷 조회"""
        pass

    # 웹 서버 설정
    @abstractmethod
    def get_web_host(self) -> str:
        """웹 서버 호스트 조회"""
        pass

    @abstractmethod
    def get_web_port(self) -> int:
        """웹 서버 포트 조회"""
