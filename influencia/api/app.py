"""HTTP entrypoint for the operator dashboard.

Serve with:
    uvicorn --factory influencia.api.app:create_app
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from influencia.adapters.auth_probe import Prober, probe_authentication
from influencia.adapters.session import SessionManager, teardown_profiles
from influencia.api.routes import health_router, router
from influencia.config import DispatchConfig, load_config
from influencia.orchestration.dispatch import DispatchEngine, SessionSource
from influencia.stores.registrants import JsonRegistrantStore, RegistrantStore


def create_app(
    *,
    config: DispatchConfig | None = None,
    store: RegistrantStore | None = None,
    sessions: SessionSource | None = None,
    prober: Prober = probe_authentication,
) -> FastAPI:
    config = config or load_config()
    sessions = sessions or SessionManager(config)
    store = store or JsonRegistrantStore(config.registrants_path)

    app = FastAPI(title="INFLUENCIA Reminders API", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    app.state.config = config
    app.state.sessions = sessions
    app.state.prober = prober
    app.state.engine = DispatchEngine(store=store, sessions=sessions, config=config, prober=prober)

    app.include_router(router)
    app.include_router(health_router)

    @app.on_event("shutdown")
    def _shutdown() -> None:
        teardown_profiles()

    return app
