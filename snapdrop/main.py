import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from snapdrop.core.db import get_engine
from snapdrop.core.errors import SnapDropError
from snapdrop.core.logging_config import setup_logging
from snapdrop.models.base import Base
from snapdrop.models import paste_model, paste_file_model  # noqa: F401
from snapdrop.routes.health import router as health_router
from snapdrop.routes.pastes import router as pastes_router
from snapdrop.routes.files import router as files_router
from snapdrop.routes.maintenance import router as maintenance_router

logger = logging.getLogger("snapdrop")


@asynccontextmanager
async def lifespan(_app: FastAPI):
    setup_logging()
    Base.metadata.create_all(bind=get_engine())
    logger.info("SnapDrop startup complete")
    yield


app = FastAPI(title="SnapDrop", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SnapDropError)
async def snapdrop_error_handler(request: Request, exc: SnapDropError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error("Database error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


app.include_router(health_router)
app.include_router(pastes_router)
app.include_router(files_router)
app.include_router(maintenance_router)


def run():
    import uvicorn

    uvicorn.run("snapdrop.main:app", host="0.0.0.0", port=8000)


if __name__ == "__main__":
    run()
