"""FastAPI application factory.

``create_app`` builds a configured ``FastAPI`` instance with:

* CORS middleware
* Request-logging / exception-handling middleware
* Certificate parsing and compliance routes
* Lifespan manager that loads requirement templates at startup
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from cert_compliance.api.middleware import ExceptionHandlerMiddleware, RequestLoggingMiddleware
from cert_compliance.api.routes.compliance import router as compliance_router
from cert_compliance.core.comparison import ComplianceComparator
from cert_compliance.core.parser import CertificateParser
from cert_compliance.core.templates import load_templates
from cert_compliance.logging.setup import setup_logging

if TYPE_CHECKING:
    from omegaconf import DictConfig


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle for the FastAPI application."""
    cfg: DictConfig = app.state.cfg

    # ── Startup: requirement templates ───────────────────────────────────
    app.state.templates = load_templates(cfg.data.templates_dir)

    logger.info("Application startup complete")
    yield
    logger.info("Application shutting down")


def create_app(cfg: DictConfig) -> FastAPI:
    """Build and return a configured :class:`FastAPI` application.

    Parameters
    ----------
    cfg:
        The merged Hydra configuration.
    """
    setup_logging(cfg.logging)

    app = FastAPI(
        title="Certificate Compliance",
        description="Insurance certificate parsing and contract compliance checks",
        version="1.0.0",
        lifespan=_lifespan,
    )

    app.state.cfg = cfg
    app.state.parser = CertificateParser(amount_window=cfg.parser.amount_window)
    app.state.comparator = ComplianceComparator()
    app.state.templates = {}

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(cfg.server.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Outermost first to run.
    app.add_middleware(ExceptionHandlerMiddleware)
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(compliance_router, prefix="/api/v1")

    return app
