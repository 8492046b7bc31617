# Passlock API - FastAPI application
#
# One app instance owns exactly one VaultManager:
#   startup  -> VaultManager built from config, LOCKED
#   shutdown -> session locked, handoff file removed

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..core import (
    EventSeverity,
    EventType,
    PasslockConfig,
    configure_audit_logger,
    log_security_event,
)
from ..vault import VaultManager
from .security import generate_session_token
from .vault_routes import router as vault_router

logger = logging.getLogger(__name__)

_allowed_origins = [
    "http://localhost:8080", "http://127.0.0.1:8080",
]


def create_app(
    config: Optional[PasslockConfig] = None,
    session_token: Optional[str] = None,
) -> FastAPI:
    """
    Build the API app.

    Args:
        config: Session settings (default: PasslockConfig.from_env())
        session_token: Token clients must send (default: random)
    """
    config = config or PasslockConfig.from_env()
    token = session_token or generate_session_token()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Before the manager: it binds the audit logger at construction
        configure_audit_logger(config.audit_dir)
        manager = VaultManager.from_config(config)
        app.state.vault_manager = manager
        log_security_event(
            EventType.SYSTEM_START,
            EventSeverity.INFO,
            "Passlock API starting",
            details={"version": __version__, "home": str(config.home)}
        )
        try:
            yield
        finally:
            manager.close()
            log_security_event(
                EventType.SYSTEM_STOP,
                EventSeverity.INFO,
                "Passlock API stopped"
            )
            logger.info("Vault session closed")

    app = FastAPI(
        title="Passlock API",
        description="Local password vault session API",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.session_token = token
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(vault_router)

    @app.get("/health")
    async def health():
        return {"ok": True}

    return app
