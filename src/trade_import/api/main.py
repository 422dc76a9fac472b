from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from trade_import.api.routes import imports


def create_app() -> FastAPI:
    app = FastAPI(
        title="Trade Import API",
        version="0.1.0",
        description="Parses MetaTrader and spreadsheet trade-history exports.",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(imports.router)

    @app.get("/healthz")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()
