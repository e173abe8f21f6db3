import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from postboard import config
from postboard.database import engine, Base
from postboard.errors import register_error_handlers
import postboard.models  # noqa: F401  registers every table on Base.metadata

from postboard.api.auth import router as auth_router
from postboard.api.posts import router as posts_router
from postboard.api.categories import router as categories_router

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("postboard")

STARTED_AT = time.monotonic()


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    logger.info("Postboard API ready in %s mode", config.ENV)
    yield
    logger.info("Postboard API shutting down")


app = FastAPI(
    title="Postboard API",
    version="1.0.0",
    lifespan=lifespan,
    docs_url=None if config.ENV == "prod" else "/docs",
    redoc_url=None if config.ENV == "prod" else "/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info("%s %s %s %.1fms", request.method, request.url.path, response.status_code, elapsed_ms)
    return response


register_error_handlers(app)

app.include_router(auth_router)
app.include_router(posts_router)
app.include_router(categories_router)


@app.get("/")
def home():
    return {"message": "Postboard API is running", "version": app.version, "status": "healthy"}


@app.get("/api/health")
def health_check():
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(time.monotonic() - STARTED_AT, 3),
        "environment": config.ENV,
    }


if __name__ == "__main__":
    import os
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", 8000)))
