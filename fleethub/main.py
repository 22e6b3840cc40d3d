import os

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from .auth.router import router as auth_router
from .config import settings
from .db import Base, SessionLocal, engine
from .exceptions import InternalError
from .logging import RequestIdMiddleware, setup_logging
from .routes.activity_logs import router as activity_logs_router
from .routes.maintenance import router as maintenance_router
from .routes.notifications import router as notifications_router
from .routes.order_items import router as order_items_router
from .routes.orders import router as orders_router
from .routes.parts import router as parts_router
from .routes.users import router as users_router
from .routes.vehicle_parts import router as vehicle_parts_router
from .routes.vehicles import router as vehicles_router
from .seed import seed_demo_data


API_PREFIX = "/api"
logger = structlog.get_logger(__name__)


def create_app() -> FastAPI:
    setup_logging()
    app = FastAPI(title=settings.app_name)

    # Middlewares
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[settings.rate_limit],
        enabled=settings.rate_limit_enabled,
    )
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})

    @app.exception_handler(Exception)
    async def _unhandled_error(request: Request, exc: Exception):
        logger.error("unhandled_exception", path=request.url.path, method=request.method, exc_info=exc)
        return JSONResponse(status_code=500, content={"detail": InternalError().detail})

    # Routers
    app.include_router(auth_router, prefix=API_PREFIX)
    app.include_router(users_router, prefix=API_PREFIX)
    app.include_router(vehicles_router, prefix=API_PREFIX)
    app.include_router(parts_router, prefix=API_PREFIX)
    app.include_router(vehicle_parts_router, prefix=API_PREFIX)
    app.include_router(maintenance_router, prefix=API_PREFIX)
    app.include_router(orders_router, prefix=API_PREFIX)
    app.include_router(order_items_router, prefix=API_PREFIX)
    app.include_router(notifications_router, prefix=API_PREFIX)
    app.include_router(activity_logs_router, prefix=API_PREFIX)

    Instrumentator().instrument(app).expose(app)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.on_event("startup")
    def _startup():
        # Ensure local SQLite directory exists
        if settings.database_url.startswith("sqlite:///./"):
            os.makedirs("var", exist_ok=True)
        if settings.auto_create_db:
            Base.metadata.create_all(bind=engine)
            logger.info("startup_tables_verified", tables=len(Base.metadata.tables))
        if settings.seed_demo_data:
            db = SessionLocal()
            try:
                seed_demo_data(db)
            finally:
                db.close()
        logger.info("startup_complete", app=settings.app_name)

    return app


app = create_app()
