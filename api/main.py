import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import Depends, FastAPI, Response, status
from fastapi.middleware.cors import CORSMiddleware

from core import db
from core.config import Settings, get_settings, load_settings
from core.envelope import write_json
from core.middleware import install_rate_limit, install_recover_panic
from core.responses import register_exception_handlers
from records import kinds
from records import router as records_router
from records.repository import RecordRepository

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    # Initialize the DB pool once per process.
    await db.init_pool(
        settings.database_url,
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
    )
    try:
        await db.ping()
    except Exception:
        await db.close_pool()
        raise
    logger.info("database connection pool established")
    logger.info("starting server port=%s env=%s", settings.port, settings.environment)
    try:
        yield
    finally:
        await db.close_pool()
        logger.info("stopped server port=%s", settings.port)


def create_app(
    settings: Settings | None = None,
    repositories: dict[str, RecordRepository] | None = None,
) -> FastAPI:
    settings = settings or load_settings()

    app = FastAPI(lifespan=lifespan)
    app.state.settings = settings
    app.state.repositories = repositories or {
        kind.plural: RecordRepository(kind, timeout=settings.db_query_timeout)
        for kind in kinds.ALL_KINDS
    }

    register_exception_handlers(app)

    # Registration order is innermost first: CORS, rate limit, panic recovery.
    if settings.cors_trusted_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.cors_trusted_origins),
            allow_methods=["OPTIONS", "GET", "POST", "PATCH", "DELETE"],
            allow_headers=["Authorization", "Content-Type"],
        )
    install_rate_limit(app, settings)
    install_recover_panic(app)

    for kind in kinds.ALL_KINDS:
        app.include_router(records_router.build_router(kind))

    @app.get("/v1/healthcheck", tags=["health"])
    async def healthcheck(current: Settings = Depends(get_settings)) -> Response:
        return write_json(
            status.HTTP_200_OK,
            {
                "status": "available",
                "system_info": {
                    "environment": current.environment,
                    "version": current.version,
                },
            },
        )

    return app


_settings = load_settings()

logging.basicConfig(
    level=getattr(logging, _settings.log_level, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

app = create_app(_settings)


def main() -> None:
    uvicorn.run(app, host="0.0.0.0", port=_settings.port)


if __name__ == "__main__":
    main()
