import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import LOG_LEVEL, WEB_ORIGIN
from database import init_db
from routes.schedule import router as schedule_router
from services.errors import (
    ConflictError,
    InvalidArgumentError,
    NotFoundError,
    ScheduleError,
    StorageError,
)

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# 서비스 예외 -> HTTP 상태 코드
STATUS_BY_ERROR = {
    NotFoundError: 404,
    InvalidArgumentError: 400,
    ConflictError: 409,
    StorageError: 500,
}


@asynccontextmanager
async def lifespan(_app: FastAPI):
    init_db()
    yield


app = FastAPI(lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o for o in ["http://localhost:5173", WEB_ORIGIN] if o],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(schedule_router)


@app.exception_handler(ScheduleError)
async def schedule_error_handler(request: Request, exc: ScheduleError):
    status = STATUS_BY_ERROR.get(type(exc), 500)
    if status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=status, content={"detail": exc.message, "code": exc.code})


@app.get("/health")
def health():
    return {"ok": True}
