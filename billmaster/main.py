import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from billmaster.core.config import (
    APP_NAME,
    BOOTSTRAP_ADMIN_EMAIL,
    BOOTSTRAP_ADMIN_NAME,
    BOOTSTRAP_ADMIN_PASSWORD,
    BOOTSTRAP_COMPANY_NAME,
    CORS_ORIGINS,
    ENV,
)
from billmaster.core.database import Base, SessionLocal, engine
from billmaster.core.errors import register_exception_handlers
from billmaster.core.logging_setup import configure_logging
from billmaster.core.startup_checks import validate_runtime_environment
from billmaster.middleware.observability import ObservabilityMiddleware
import billmaster.models  # noqa: F401  garante que os models são importados antes do create_all

from billmaster.routers.auth import router as auth_router
from billmaster.routers.companies import router as companies_router
from billmaster.routers.customers import router as customers_router
from billmaster.routers.dashboard import router as dashboard_router
from billmaster.routers.invoices import router as invoices_router
from billmaster.routers.products import router as products_router
from billmaster.routers.reports import router as reports_router
from billmaster.routers.roles import router as roles_router
from billmaster.routers.users import router as users_router
from billmaster.services.admin_bootstrap import seed_roles, upsert_super_admin

configure_logging()

logger = logging.getLogger(__name__)
BOOTSTRAP_PREFIX = "[ADMIN_BOOTSTRAP]"


@asynccontextmanager
async def lifespan(_: FastAPI):
    _startup_tasks()
    yield


app = FastAPI(
    title=f"{APP_NAME} API",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(ObservabilityMiddleware)

register_exception_handlers(app)


def _bootstrap_initial_admin() -> None:
    if not BOOTSTRAP_ADMIN_EMAIL or not BOOTSTRAP_ADMIN_PASSWORD:
        logger.info("%s skipped: configure BOOTSTRAP_ADMIN_EMAIL and BOOTSTRAP_ADMIN_PASSWORD.", BOOTSTRAP_PREFIX)
        return

    db = SessionLocal()
    try:
        admin, created = upsert_super_admin(
            db,
            email=BOOTSTRAP_ADMIN_EMAIL,
            name=BOOTSTRAP_ADMIN_NAME,
            password=BOOTSTRAP_ADMIN_PASSWORD,
            company_name=BOOTSTRAP_COMPANY_NAME,
        )
        logger.info(
            "%s %s id=%s company_id=%s",
            BOOTSTRAP_PREFIX,
            "created" if created else "updated",
            admin.id,
            admin.company_id,
        )
    finally:
        db.close()


def _startup_tasks() -> None:
    logger.info("startup env=%s", ENV)
    validate_runtime_environment()
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        seed_roles(db)
    finally:
        db.close()

    _bootstrap_initial_admin()


app.include_router(auth_router)
app.include_router(companies_router)
app.include_router(users_router)
app.include_router(products_router)
app.include_router(customers_router)
app.include_router(invoices_router)
app.include_router(dashboard_router)
app.include_router(roles_router)
app.include_router(reports_router)


@app.get("/")
def root():
    return {"status": "ok", "service": APP_NAME}


@app.get("/health")
def health():
    return {"status": "ok"}
