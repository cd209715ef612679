from __future__ import annotations

import os

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware


def add_default_middlewares(app: FastAPI) -> None:
    # Review tooling runs on local dev servers outside production
    env = os.getenv("ENV", "development")

    if env in ("development", "staging"):
        allowed_origins = [
            "http://localhost:3000",
            "http://localhost:5173",  # Vite default
            "http://127.0.0.1:3000",
            "http://127.0.0.1:5173",
        ]
    else:
        allowed_origins = [o for o in os.getenv("CORS_ORIGINS", "").split(",") if o]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
