"""
CORS middleware configuration.
Origins come from settings (viah.me + the local web tier in dev). No wildcards.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from services.api.config import settings


def setup_cors(app: FastAPI) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=[
            "Content-Type",
            "X-Request-ID",
            "X-Proxy-Signature",
            "X-Proxy-Timestamp",
            "X-Proxy-User-Id",
            "X-Proxy-Body-Hash",
        ],
        max_age=600,
    )
