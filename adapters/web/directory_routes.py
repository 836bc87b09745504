"""
FastAPI 디렉터리 동기화 라우터

동기화 대상 그룹 설정, 동기화 실행, 캐시 조회를 위한 관리자 API입니다.
앱 자격 증명이 없는 환경에서는 X-Graph-Token 헤더의 사용자 토큰을 대체로 사용합니다.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from core.domain.exceptions import (
    ConfigurationError,
    DirectoryForbiddenError,
    DirectoryNotFoundError,
    DirectorySyncError,
)
from core.usecases.directory_sync import DirectorySyncUseCase
from adapters.db.database import get_db_session
from adapters.factory import get_adapter_factory
from adapters.logger import create_logger

router = APIRouter(prefix="/directory", tags=["directory"])
logger = create_logger("directory_router")


class GroupConfigRequest(BaseModel):
    """동기화 대상 그룹 설정 요청"""

    group_id: str = Field(..., min_length=1, description="디렉터리 그룹 ID")


async def get_directory_sync_usecase(
    session: AsyncSession = Depends(get_db_session),
) -> DirectorySyncUseCase:
    """디렉터리 동기화 유즈케이스 의존성 주입 함수"""
    return get_adapter_factory().create_directory_sync_usecase(session)


def _to_http_exception(error: DirectorySyncError) -> HTTPException:
    """도메인 예외를 HTTP 오류로 변환합니다."""
    if isinstance(error, ConfigurationError):
        return HTTPException(status_code=400, detail=str(error))
    if isinstance(error, DirectoryNotFoundError):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, DirectoryForbiddenError):
        return HTTPException(status_code=403, detail=str(error))
    return HTTPException(status_code=500, detail=str(error))


@router.get("/config")
async def get_config_status(
    usecase: DirectorySyncUseCase = Depends(get_directory_sync_usecase),
):
    """동기화 대상 그룹 설정을 조회합니다."""
    marker = await usecase.get_sync_status()

    if marker is None or not marker.is_configured():
        return {"configured": False, "group_id": None, "group_name": None, "last_synced_at": None}

    return {
        "configured": True,
        "group_id": marker.group_id,
        "group_name": marker.group_name,
        "last_synced_at": marker.last_synced_at.isoformat() if marker.last_synced_at else None,
    }


@router.post("/config")
async def configure_group(
    request: GroupConfigRequest,
    x_graph_token: Optional[str] = Header(None),
    usecase: DirectorySyncUseCase = Depends(get_directory_sync_usecase),
):
    """동기화 대상 그룹을 검증하고 저장합니다."""
    logger.info(f"그룹 설정 요청: group_id={request.group_id}")

    try:
        marker = await usecase.configure_group(request.group_id, x_graph_token)
    except DirectorySyncError as e:
        logger.error(f"그룹 설정 실패: {str(e)}")
        raise _to_http_exception(e)

    return {
        "configured": True,
        "group_id": marker.group_id,
        "group_name": marker.group_name,
    }


@router.post("/sync")
async def run_sync(
    group_id: Optional[str] = Query(None, description="동기화할 그룹 ID (생략 시 설정된 그룹)"),
    x_graph_token: Optional[str] = Header(None),
    usecase: DirectorySyncUseCase = Depends(get_directory_sync_usecase),
):
    """그룹 멤버 동기화를 실행합니다."""
    logger.info(f"동기화 요청: group_id={group_id or '(설정된 그룹)'}")

    try:
        if group_id:
            result = await usecase.sync_group_detailed(group_id, x_graph_token)
        else:
            result = await usecase.sync_configured_group(x_graph_token)
    except DirectorySyncError as e:
        logger.error(f"동기화 실패: {str(e)}")
        raise _to_http_exception(e)

    return {
        "synced": result.synced,
        "failed": result.failed,
        "deleted": result.deleted,
        "fetched": result.fetched,
        "last_synced_at": result.last_synced_at.isoformat() if result.last_synced_at else None,
    }


@router.get("/members")
async def list_members(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    usecase: DirectorySyncUseCase = Depends(get_directory_sync_usecase),
):
    """캐시된 디렉터리 계정 목록을 조회합니다."""
    entries = await usecase.list_cached_accounts(skip=skip, limit=limit)

    return {
        "count": len(entries),
        "members": [
            {
                "id": entry.external_id,
                "email": entry.email,
                "display_name": entry.display_name,
                "last_synced_at": entry.last_synced_at.isoformat(),
            }
            for entry in entries
        ],
    }
