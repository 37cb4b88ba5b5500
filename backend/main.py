import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from database import connect_db, get_db

# ENV
from config.env import (
    ADMIN_EMAIL,
    ADMIN_PASSWORD,
    CORS_ALLOWED_ORIGINS,
    ENV,
    LOG_LEVEL,
    REVOCATION_BACKEND,
    is_development,
    validate_production_env,
)

# ROUTES
from routes.auth import router as auth_router
from routes.users import router as users_router
from routes.customers import router as customers_router
from routes.sellers import router as sellers_router
from routes.deliverers import router as deliverers_router
from routes.admin import router as admin_router
from routes.products import router as products_router
from routes.orders import router as orders_router
from routes.deliveries import router as deliveries_router
from routes.reviews import router as reviews_router
from routes.payments import router as payments_router

from utils.accounts import ensure_bootstrap_admin
from utils.errors import install_error_handlers
from utils.indexes import ensure_indexes
from utils.revocation import build_revocation_store

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

ROUTERS = (
    auth_router,
    users_router,
    customers_router,
    sellers_router,
    deliverers_router,
    admin_router,
    products_router,
    orders_router,
    deliveries_router,
    reviews_router,
    payments_router,
)


def create_app(db=None, revocation_store=None) -> FastAPI:
    """
    Build the API. ``db`` and ``revocation_store`` are injectable; when left
    out they are created from the environment on startup.
    """
    validate_production_env()
    logger.info("ENV: %s", ENV)

    app = FastAPI(
        title="Marketplace API",
        version="1.0.0",
        docs_url=None if ENV == "production" else "/docs",
        redoc_url=None if ENV == "production" else "/redoc",
        openapi_url=None if ENV == "production" else "/openapi.json",
    )
    app.state.db = db
    app.state.revocation_store = revocation_store

    # -----------------------------
    # CORS
    # -----------------------------

    allowed_origins = [origin.strip() for origin in CORS_ALLOWED_ORIGINS if origin.strip()]
    if not allowed_origins:
        allowed_origins = [
            "http://localhost:3000",
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    install_error_handlers(app, development=is_development())

    # -----------------------------
    # ROUTES
    # -----------------------------

    for router in ROUTERS:
        app.include_router(router, prefix="/api")

    # -----------------------------
    # HEALTH CHECKS
    # -----------------------------

    @app.get("/api/health")
    async def health():
        return {"status": "ok"}

    @app.get("/api/health/db")
    async def health_db(request: Request):
        await get_db(request).command("ping")
        return {"status": "mongodb connected"}

    # -----------------------------
    # STARTUP
    # -----------------------------

    @app.on_event("startup")
    async def startup():
        if app.state.db is None:
            app.state.db = connect_db()

        if app.state.revocation_store is None:
            app.state.revocation_store = build_revocation_store(
                REVOCATION_BACKEND, app.state.db
            )

        await ensure_indexes(app.state.db)
        await ensure_bootstrap_admin(app.state.db, ADMIN_EMAIL, ADMIN_PASSWORD)

    return app


app = create_app()
