from __future__ import annotations

from typing import Optional

from fastapi import FastAPI, Request, Response
from fastapi.concurrency import run_in_threadpool

from fairshare_gateway.ai.registry import AnalyzerRegistry
from fairshare_gateway.auth.crud import CredentialStore
from fairshare_gateway.config import Config, load_config
from fairshare_gateway.db import init_db
from fairshare_gateway.gateway import Gateway, GatewayRequest


def _debug(msg: str) -> None:
    print(f"[api] {msg}")


ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]


def create_app(
    cfg: Optional[Config] = None,
    *,
    store: Optional[CredentialStore] = None,
    registry: Optional[AnalyzerRegistry] = None,
) -> FastAPI:
    """Build the ASGI app around one Gateway.

    Config, store and registry are built once here and shared read-only by
    every request. Routing is the gateway's job, so a single catch-all route
    hands every request over; that keeps CORS headers and the 404 body
    identical for matched and unmatched paths.
    """
    cfg = cfg or load_config()
    store = store or CredentialStore(cfg.DB_DSN, timeout_seconds=cfg.STORE_TIMEOUT_SECONDS)
    registry = registry or AnalyzerRegistry.from_config(cfg)
    gateway = Gateway(cfg, store, registry)

    app = FastAPI(title="FairShare Gateway", version="0.1.0", docs_url=None, redoc_url=None, openapi_url=None)
    app.state.cfg = cfg
    app.state.gateway = gateway

    @app.on_event("startup")
    def _on_startup() -> None:
        # Ensure schema exists.
        init_db(store.db_dsn, timeout_seconds=cfg.STORE_TIMEOUT_SECONDS)
        configured = [p.provider_id for p in cfg.PROVIDERS if p.api_key]
        _debug(f"Providers with credentials: {', '.join(configured) or 'none'}")

    @app.api_route("/{path:path}", methods=ALL_METHODS, include_in_schema=False)
    async def handle(request: Request) -> Response:
        body = await request.body()
        req = GatewayRequest(
            method=request.method,
            path=request.url.path,
            headers=dict(request.headers),
            body=body,
        )
        # Blocking work (PBKDF2, store, upstream HTTP) runs off the event loop.
        res = await run_in_threadpool(gateway.handle, req)
        return Response(
            content=res.body,
            status_code=res.status,
            headers=dict(res.headers),
            media_type=res.media_type,
        )

    return app


app = create_app()
