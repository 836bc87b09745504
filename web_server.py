"""
FastAPI 웹 서버

디렉터리 그룹 멤버 동기화를 위한 관리자 API를 제공합니다.
"""

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from adapters.web.directory_routes import router as directory_router
from adapters.db.database import initialize_database
from adapters.logger import create_logger
from config.adapters import get_config

# 로거 설정
logger = create_logger("web_server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """서버 시작/종료 시 데이터베이스 연결을 관리합니다."""
    logger.info("FastAPI 웹 서버 시작")

    config = get_config()
    db_adapter = initialize_database(config)
    await db_adapter.initialize()
    await db_adapter.create_tables()

    logger.info(f"환경: {config.get_environment()}")
    logger.info(f"데이터베이스: {config.get_database_url()}")
    logger.info("웹 서버 준비 완료")

    yield

    logger.info("FastAPI 웹 서버 종료")
    await db_adapter.close()


# FastAPI 앱 생성
app = FastAPI(
    title="디렉터리 그룹 멤버 동기화 서비스",
    description="Microsoft Entra ID 그룹 멤버를 로컬 캐시에 동기화하는 관리자 API",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS 설정
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # 프로덕션에서는 특정 도메인만 허용
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 라우터 등록
app.include_router(directory_router)


@app.get("/health")
async def health():
    """상태 확인"""
    return {"status": "ok"}


if __name__ == "__main__":
    # 설정 로드
    config = get_config()

    # 서버 실행
    uvicorn.run(
        "web_server:app",
        host=config.get_web_host(),
        port=config.get_web_port(),
        reload=config.is_debug(),
        log_level=config.get_log_level().lower(),
    )
