"""FastAPI 애플리케이션 진입점. 미들웨어, API 라우터, 공통 오류 응답을 등록합니다."""

import logging
from datetime import datetime

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from blogdesk.config import settings
from blogdesk.database import Base, engine
import blogdesk.models  # noqa: F401 - 모델 import로 metadata 등록
from blogdesk.routers import auth, posts, users
from blogdesk.services.asset_store import close_asset_store

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="blogdesk",
    description="게시글/이미지/변경 이력을 관리하는 블로그 CMS API",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register all routers
app.include_router(auth.router)
app.include_router(posts.router)
app.include_router(users.router)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "잘못된 요청입니다.")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "error": f"{location}: {message}" if location else message},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("[errors] unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "error": "Internal server error"},
    )


@app.on_event("startup")
def ensure_schema():
    Base.metadata.create_all(bind=engine)
    missing = settings.missing_required()
    if missing:
        logger.warning("[config] missing settings: %s", ", ".join(missing))


@app.on_event("shutdown")
async def shutdown_asset_store():
    await close_asset_store()


@app.get("/api/health")
def health_check():
    return {"success": True, "message": "Server is running", "timestamp": datetime.utcnow().isoformat()}
