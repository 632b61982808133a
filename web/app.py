"""
FastAPI 애플리케이션

라우터 등록, 예외 매핑 및 앱 설정.
"""

import logging
from contextlib import AsyncExitStack, asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.errors import (
    EligibilityViolation,
    GatewayError,
    InsufficientInventory,
    LedgerError,
    NotFoundError,
    RecordNotFound,
    SplitCategoryConflict,
    SplitSumMismatch,
    ValidationError,
)
from core.logging import setup_logging
from engine.bootstrap import open_ledger

# 로깅 설정 (콘솔 + 파일)
setup_logging("web")

from web.routes import (
    accounts,
    dues,
    health,
    inventory,
    reports,
    splits,
    transactions,
)
from web.routes.health import API_VERSION

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """앱 생명주기 관리

    테스트에서 app.state.ledger를 미리 지정하면 DB를 열지 않음.
    """
    async with AsyncExitStack() as stack:
        if getattr(app.state, "ledger", None) is None:
            app.state.ledger = await stack.enter_async_context(open_ledger())
            logger.info("Web: Ledger 초기화 완료")
        yield
    logger.info("Web: 종료")


app = FastAPI(
    title="Chapter Ledger API",
    description="챕터 회계 원장 및 정산 시스템 API",
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS 설정 (개발용)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =========================================================================
# 예외 → HTTP 상태 매핑
# =========================================================================

# 순서대로 매칭 (하위 클래스를 먼저 나열)
_STATUS_BY_ERROR: dict[type[LedgerError], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    SplitSumMismatch: status.HTTP_409_CONFLICT,
    SplitCategoryConflict: status.HTTP_409_CONFLICT,
    InsufficientInventory: status.HTTP_409_CONFLICT,
    EligibilityViolation: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    RecordNotFound: status.HTTP_404_NOT_FOUND,
    GatewayError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    status_code = next(
        (code for cls, code in _STATUS_BY_ERROR.items() if isinstance(exc, cls)),
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc!r}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc}")
    return JSONResponse(
        status_code=status_code,
        content={"error": type(exc).__name__, "detail": str(exc)},
    )


app.add_exception_handler(LedgerError, ledger_error_handler)

# =========================================================================
# API 라우터 등록
# =========================================================================

app.include_router(health.router)
app.include_router(transactions.router)
app.include_router(splits.router)
app.include_router(accounts.router)
app.include_router(dues.router)
app.include_router(inventory.router)
app.include_router(reports.router)
