"""
도메인 엔티티 정의

디렉터리 그룹 멤버 동기화의 핵심 개념을 나타내는 엔티티들을 정의합니다.
모든 엔티티는 Pydantic 모델을 기반으로 하여 타입 안정성을 보장합니다.
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_validator


def utc_now() -> datetime:
    """현재 UTC 시간을 반환합니다. (DB 저장용 naive datetime)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class DirectoryAccount(BaseModel):
    """동기화 대상 그룹의 멤버 한 명

    페치 중에만 존재하는 임시 엔티티이며 캐시 반영(reconcile)의 입력 단위입니다.
    """

    id: str = Field(..., description="디렉터리 객체 ID")
    email: str = Field(..., description="메일 주소 (mail 또는 userPrincipalName)")
    display_name: str = Field(default="", description="표시 이름")

    @field_validator("id", "email")
    @classmethod
    def validate_not_empty(cls, v):
        if not v or not v.strip():
            raise ValueError("빈 값은 허용되지 않습니다")
        return v


class CachedAccountEntry(BaseModel):
    """로컬 캐시에 저장된 디렉터리 계정"""

    id: UUID = Field(default_factory=uuid4, description="캐시 항목 ID")
    external_id: str = Field(..., description="디렉터리 객체 ID (고유 키)")
    email: str = Field(..., description="메일 주소")
    display_name: str = Field(default="", description="표시 이름")
    last_synced_at: datetime = Field(default_factory=utc_now, description="마지막 동기화 시간")
    created_at: datetime = Field(default_factory=utc_now, description="생성 시간")
    updated_at: datetime = Field(default_factory=utc_now, description="수정 시간")


class SyncConfigMarker(BaseModel):
    """동기화 대상 그룹 설정 및 마지막 동기화 시각 (전역 단일 레코드)"""

    id: UUID = Field(default_factory=uuid4, description="설정 ID")
    group_id: Optional[str] = Field(None, description="동기화 대상 그룹 ID")
    group_name: Optional[str] = Field(None, description="그룹 표시 이름")
    last_synced_at: Optional[datetime] = Field(None, description="마지막 동기화 시간")
    created_at: datetime = Field(default_factory=utc_now, description="생성 시간")
    updated_at: datetime = Field(default_factory=utc_now, description="수정 시간")

    def is_configured(self) -> bool:
        """동기화 대상 그룹이 설정되어 있는지 확인"""
        return bool(self.group_id)


class GroupInfo(BaseModel):
    """그룹 메타데이터"""

    id: str = Field(..., description="그룹 ID")
    display_name: str = Field(..., description="그룹 표시 이름")


class DirectoryPage(BaseModel):
    """디렉터리 API 응답 한 페이지"""

    items: List[Dict] = Field(default_factory=list, description="원본 레코드 목록")
    next_cursor: Optional[str] = Field(None, description="다음 페이지 커서 (@odata.nextLink)")

    def has_next(self) -> bool:
        return bool(self.next_cursor)


class FetchStatistics(BaseModel):
    """멤버 페치 진단 카운터"""

    endpoint: Optional[str] = Field(None, description="결과를 반환한 엔드포인트")
    pages_fetched: int = Field(default=0, description="조회한 페이지 수")
    throttle_retries: int = Field(default=0, description="스로틀링 재시도 횟수")
    detail_lookups: int = Field(default=0, description="개별 사용자 보강 조회 횟수")
    detail_lookup_failures: int = Field(default=0, description="보강 조회 실패 횟수")
    skipped_non_users: int = Field(default=0, description="사용자가 아니어서 제외된 레코드 수")
    dropped_without_email: int = Field(default=0, description="메일이 없어 제외된 레코드 수")
    duplicates: int = Field(default=0, description="중복 ID로 제외된 레코드 수")


class SyncResult(BaseModel):
    """캐시 반영 결과"""

    synced: int = Field(default=0, description="업서트 성공 수")
    failed: int = Field(default=0, description="업서트 실패 수")
    deleted: int = Field(default=0, description="삭제된 오래된 항목 수")
    fetched: int = Field(default=0, description="디렉터리에서 가져온 계정 수")
    last_synced_at: Optional[datetime] = Field(None, description="동기화 마커 시간")
