from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import router as api_router
from .config import ParserConfig, ServiceSettings
from .services.state_store import KifuStore, RuntimeState


def create_app(
    settings: ServiceSettings | None = None,
    config: ParserConfig | None = None,
) -> FastAPI:
    app = FastAPI(title="KIF Variation Tree")

    settings = settings or ServiceSettings.from_env()
    config = config or ParserConfig.from_env()
    store = KifuStore(max_stored=settings.max_stored)
    app.state.runtime = RuntimeState(store, settings, config)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)
    return app


app = create_app()
