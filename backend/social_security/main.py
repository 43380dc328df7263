import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Ensure all SQLAlchemy models are imported so metadata is complete
import social_security.models  # noqa: F401

from social_security.api import social_security as social_security_api  # /social-security
from social_security.api.system import router as system_router  # /health, /version
from social_security.logging_setup import configure_logging

DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000", "http://127.0.0.1:3000",
    "http://localhost:5173", "http://127.0.0.1:5173",
]


def _cors_origins() -> list[str]:
    raw = os.getenv("CORS_ORIGINS")
    if not raw:
        return DEFAULT_CORS_ORIGINS
    return [o.strip() for o in raw.split(",") if o.strip()]


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(title="Social Security Calculator")

    # --- CORS for local frontend dev ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(system_router)              # /health, /version
    app.include_router(social_security_api.router) # /social-security (calculate + config)
    return app


app = create_app()
