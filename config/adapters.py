"""
설정 어댑터

디렉터리 동기화 서비스의 환경별 설정 어댑터입니다.
"""

import os
from typing import Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.domain.ports import ConfigPort


class BaseConfig(BaseSettings, ConfigPort):
    """기본 설정 클래스"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    # 환경 설정
    environment: str = Field(default="development")
    debug: bool = Field(default=False)

    # 데이터베이스 설정
    database_url: str = Field(...)

    # Microsoft Entra ID 앱 자격 증명 (app-only 토큰 발급용)
    azure_client_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("AZURE_CLIENT_ID", "AZURE_APP_CLIENT_ID", "AUTH_CLIENT_ID"),
    )
    azure_client_secret: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("AZURE_CLIENT_SECRET", "AZURE_APP_CLIENT_SECRET", "AUTH_CLIENT_SECRET"),
    )
    azure_tenant_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("AZURE_TENANT_ID", "AUTH_TENANT_ID"),
    )

    # Microsoft Graph API 설정
    graph_base_url: str = Field(default="https://graph.microsoft.com/v1.0")
    graph_auth_url: str = Field(default="https://login.microsoftonline.com")
    graph_timeout_seconds: float = Field(default=30.0)

    # 동기화 설정
    sync_max_retries: int = Field(default=5)
    sync_base_delay_ms: int = Field(default=1000)
    sync_group_id: Optional[str] = Field(default=None)

    # 로깅 설정
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    # 웹 서버 설정 (관리자 동기화 API)
    web_host: str = Field(default="0.0.0.0")
    web_port: int = Field(default=5000)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """로그 레벨 검증"""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"로그 레벨은 {valid_levels} 중 하나여야 합니다")
        return v.upper()

    @field_validator("sync_max_retries", "sync_base_delay_ms")
    @classmethod
    def validate_non_negative(cls, v):
        if v < 0:
            raise ValueError("음수는 허용되지 않습니다")
        return v

    # ConfigPort 인터페이스 구현
    def get_environment(self) -> str:
        return self.environment

    def is_debug(self) -> bool:
        return self.debug

    def get_database_url(self) -> str:
        return self.database_url

    def get_azure_client_id(self) -> Optional[str]:
        return self.azure_client_id

    def get_azure_client_secret(self) -> Optional[str]:
        return self.azure_client_secret

    def get_azure_tenant_id(self) -> Optional[str]:
        return self.azure_tenant_id

    def get_graph_base_url(self) -> str:
        return self.graph_base_url.rstrip("/")

    def get_graph_auth_url(self) -> str:
        return self.graph_auth_url.rstrip("/")

    def get_graph_timeout_seconds(self) -> float:
        return self.graph_timeout_seconds

    def get_sync_max_retries(self) -> int:
        return self.sync_max_retries

    def get_sync_base_delay_ms(self) -> int:
        return self.sync_base_delay_ms

    def get_sync_group_id(self) -> Optional[str]:
        return self.sync_group_id

    def get_log_level(self) -> str:
        return self.log_level

    def get_log_format(self) -> str:
        return self.log_format

    def get_web_host(self) -> str:
        return self.web_host

    def get_web_port(self) -> int:
        return self.web_port


class DevelopmentConfig(BaseConfig):
    """개발 환경 설정"""

    environment: str = "development"
    debug: bool = True
    log_level: str = "DEBUG"

    # 개발용 기본값
    database_url: str = Field(default="sqlite+aiosqlite:///./dev_directory_sync.db")


class ProductionConfig(BaseConfig):
    """운영 환경 설정"""

    environment: str = "production"
    debug: bool = False
    log_level: str = "INFO"

    @field_validator("database_url")
    @classmethod
    def validate_production_database_url(cls, v):
        """운영 환경에서는 데이터베이스 URL이 필수"""
        if not v or v.startswith("sqlite"):
            raise ValueError("운영 환경에서는 PostgreSQL 데이터베이스가 필요합니다")
        return v

    @field_validator("azure_client_secret")
    @classmethod
    def validate_production_secrets(cls, v):
        """운영 환경에서는 개발용 시크릿을 허용하지 않음"""
        if v and v.startswith("dev_"):
            raise ValueError("운영 환경에서는 실제 시크릿 값이 필요합니다")
        return v


class TestingConfig(BaseConfig):
    """테스트 환경 설정"""

    environment: str = "testing"
    debug: bool = True
    log_level: str = "WARNING"

    # 테스트용 기본값
    database_url: str = Field(default="sqlite+aiosqlite:///:memory:")
    graph_base_url: str = "https://graph.test/v1.0"
    graph_auth_url: str = "https://login.test"
    sync_base_delay_ms: int = 1


class ConfigAdapter:
    """설정 어댑터 팩토리"""

    @staticmethod
    def create_config() -> ConfigPort:
        """환경에 따른 설정 객체를 생성합니다."""
        environment = os.getenv("ENVIRONMENT", "development").lower()

        if environment == "production":
            return ProductionConfig()
        elif environment == "testing":
            return TestingConfig()
        else:
            return DevelopmentConfig()


# 전역 설정 인스턴스
_config: Optional[ConfigPort] = None


def get_config() -> ConfigPort:
    """전역 설정 인스턴스를 반환합니다."""
    global _config
    if _config is None:
        _config = ConfigAdapter.create_config()
    return _config
