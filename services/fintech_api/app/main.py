import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from .core.config import settings
from .core.db import Store
from .core.errors import LedgerError, ledger_error_handler, request_validation_handler
from .routes.users import router as users_router
from .routes.accounts import router as accounts_router
from .routes.transactions import router as tx_router
from .routes.cards import router as cards_router
from .routes.beneficiaries import router as beneficiaries_router
from .routes.notifications import router as notifications_router
from .routes.investments import router as investments_router
from .routes.support_tickets import router as support_router

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stdout,
)

log = logging.getLogger("fintech-api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    owned = app.state.store is None
    if owned:
        app.state.store = Store(settings.database_url)
        log.info("store opened")
    if settings.create_schema:
        app.state.store.create_schema()
    try:
        yield
    finally:
        if owned:
            app.state.store.close()
            app.state.store = None


def create_app(store: Optional[Store] = None) -> FastAPI:
    """Build the API; pass `store` to run against an already opened database."""
    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.store = store

    app.add_exception_handler(LedgerError, ledger_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    @app.get("/healthz")
    def health():
        return {"status": "ok"}

    app.include_router(users_router)
    app.include_router(accounts_router)
    app.include_router(tx_router)
    app.include_router(cards_router)
    app.include_router(beneficiaries_router)
    app.include_router(notifications_router)
    app.include_router(investments_router)
    app.include_router(support_router)
    return app


app = create_app()
