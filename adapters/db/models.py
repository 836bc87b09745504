"""
SQLAlchemy 데이터베이스 모델

디렉터리 계정 캐시와 동기화 설정 테이블 모델을 정의합니다.
SQLite 호환성을 위해 UUID는 String으로 처리합니다.
"""

import uuid

from sqlalchemy import Column, DateTime, Index, String
from sqlalchemy.orm import declarative_base

from core.domain.entities import utc_now

Base = declarative_base()


class DirectoryAccountCacheModel(Base):
    """디렉터리 계정 캐시 테이블 모델"""

    __tablename__ = "directory_account_cache"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    external_id = Column(String(255), unique=True, nullable=False)
    email = Column(String(320), nullable=False)
    display_name = Column(String(255), nullable=False, default="")
    last_synced_at = Column(DateTime, nullable=False, default=utc_now)
    created_at = Column(DateTime, nullable=False, default=utc_now)
    updated_at = Column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    __table_args__ = (
        Index("idx_directory_account_cache_email", "email"),
    )


class DirectorySyncConfigModel(Base):
    """동기화 설정 테이블 모델 (전역 단일 레코드)"""

    __tablename__ = "directory_sync_config"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    group_id = Column(String(255), unique=True, nullable=True)
    group_name = Column(String(255), nullable=True)
    last_synced_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utc_now)
    updated_at = Column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)
