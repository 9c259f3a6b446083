"""
FastAPI Application

Main application setup and configuration.

Usage:
    uvicorn api.app:app --reload

    # Or run directly
    python -m api.app
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.deps import LedgerService, load_runtime_config
from api.errors import APIError, api_error_handler, generic_error_handler, ledger_error_handler
from api.routes import events, health, offers, tokens, transfer
from core.config.runtime import RuntimeConfig
from core.schemas.errors import LedgerException
from orchestrator.ledger import TokenLedger


logging.basicConfig(
    level=getattr(logging, load_runtime_config().log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)


def create_app(
    ledger: Optional[TokenLedger] = None,
    config: Optional[RuntimeConfig] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        ledger: Serve this ledger (not persisted) instead of one built from config
        config: Runtime configuration (defaults to config file + environment)
    """

    app = FastAPI(
        title="PTT Ledger API",
        description="""
HTTP API for the physical-token ledger.

## Endpoints

- **POST /tokens** - Mint a token committed to a device code batch
- **POST /tokens/{id}/offers** - Escrow an offer for a token
- **POST /tokens/{id}/offers/accept** - Owner accepts a counterparty
- **POST /tokens/{id}/transfer** - Transfer with the next device code
- **GET /events** - Published ownership and escrow records
- **GET /health** - Health check

The calling account is given in the `X-Account` header.
        """,
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register exception handlers
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(LedgerException, ledger_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    # Include routers
    app.include_router(health.router)
    app.include_router(tokens.router)
    app.include_router(offers.router)
    app.include_router(transfer.router)
    app.include_router(events.router)

    if ledger is not None:
        app.state.ledger_service = LedgerService(ledger)
    else:
        app.state.ledger_service = LedgerService.from_config(config or load_runtime_config())

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    runtime = load_runtime_config()
    uvicorn.run(app, host=runtime.api.host, port=runtime.api.port)
