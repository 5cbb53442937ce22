# main.py
import logging
from typing import Optional

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware

from .config import CORS_ORIGINS, LOG_LEVEL
from .host import LedgerHost
from .routes.transaction_routes import router as transaction_router

logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)


def create_app(host: Optional[LedgerHost] = None) -> FastAPI:
    app = FastAPI(title="Election Ledger - contract host gateway")
    app.state.host = host if host is not None else LedgerHost()
    logger.info(f"Ledger host ready on {app.state.host.store.name} storage")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(transaction_router)

    @app.get("/health", tags=["Root"])
    def health_check():
        return {"status": "healthy", "storage": app.state.host.store.name}

    @app.get("/", tags=["Root"])
    def read_root():
        return {"message": "Welcome to the Election Ledger API"}

    @app.get("/favicon.ico", include_in_schema=False)
    def favicon():
        return Response(status_code=204)

    return app


app = create_app()
