import time
from fastapi import FastAPI, Request

from routers.router import router
from core.lifespan import lifespan
from core.config import settings
from core.logger import logger


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="""
    Background worker draining the quiz file-upload and AI-processing SQS queues.

    **GET /api/v1/health** - per-queue consumer status for uptime monitoring
    """,
        version=settings.VERSION,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url=None,
    )

    # Request/Response logging middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        duration = time.time() - start_time

        # Uptime monitors hit the health check constantly
        if not request.url.path.endswith("/health"):
            logger.info(
                f"Request: {request.method} {request.url.path} status={response.status_code} "
                f"duration_ms={int(duration * 1000)}"
            )
        return response

    app.include_router(router)

    @app.get("/", tags=["Root"])
    async def root():
        return {
            "service": settings.PROJECT_NAME,
            "version": settings.VERSION,
            "status": "running",
        }

    return app


app = create_app()
