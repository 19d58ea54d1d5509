"""CORS configuration"""

import os
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware


def allowed_origins() -> list[str]:
    """Origins from ALLOWED_ORIGINS (comma separated); empty means any"""
    origins_str = os.getenv("ALLOWED_ORIGINS", "")
    return [origin.strip() for origin in origins_str.split(",") if origin.strip()]


def setup_cors(app: FastAPI) -> None:
    """Configure CORS middleware

    Without ALLOWED_ORIGINS every origin is allowed, but then credentials
    cannot be sent (browsers reject "*" with credentials).
    """
    origins = allowed_origins()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or ["*"],
        allow_credentials=bool(origins),
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )
