"""
Application settings.

Values come from the environment, with a `.env` file in the project root loaded
first. Nothing here raises for missing credentials: each collaborator validates
the values it needs when it is built, so the health endpoint and the tests work
without a full configuration.

Environment variables:
- SUPABASE_URL, SUPABASE_KEY: catalog and order storage
- STRIPE_SECRET_KEY: creating checkout sessions
- STRIPE_WEBHOOK_SECRET: verifying webhook signatures
- PRINTFUL_API_KEY: submitting fulfillment orders
- PRINTFUL_API_BASE, PRINTFUL_TIMEOUT_SECONDS: optional Printful overrides
- ADMIN_API_KEY: static credential for the admin endpoints
- PUBLIC_BASE_URL: storefront base URL for checkout redirects
- LOG_LEVEL: root log level (default INFO)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from services.printful_client import DEFAULT_TIMEOUT_SECONDS, PRINTFUL_API_BASE

# Look for .env in the project root
_ENV_PATH = Path(__file__).parent.parent / ".env"


@dataclass(frozen=True, slots=True)
class Settings:
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    stripe_secret_key: Optional[str] = None
    stripe_webhook_secret: Optional[str] = None
    printful_api_key: Optional[str] = None
    printful_api_base: str = PRINTFUL_API_BASE
    printful_timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    admin_api_key: Optional[str] = None
    public_base_url: str = "http://localhost:3000"
    log_level: str = "INFO"


def load_settings() -> Settings:
    """Read settings from the environment (after loading .env)."""

    load_dotenv(dotenv_path=_ENV_PATH)

    timeout_raw = os.getenv("PRINTFUL_TIMEOUT_SECONDS")
    try:
        timeout = float(timeout_raw) if timeout_raw else DEFAULT_TIMEOUT_SECONDS
    except ValueError:
        raise RuntimeError(
            f"Invalid PRINTFUL_TIMEOUT_SECONDS: {timeout_raw!r}. Set it to a number of seconds."
        ) from None

    return Settings(
        supabase_url=os.getenv("SUPABASE_URL"),
        supabase_key=os.getenv("SUPABASE_KEY"),
        stripe_secret_key=os.getenv("STRIPE_SECRET_KEY"),
        stripe_webhook_secret=os.getenv("STRIPE_WEBHOOK_SECRET"),
        printful_api_key=os.getenv("PRINTFUL_API_KEY"),
        printful_api_base=os.getenv("PRINTFUL_API_BASE") or PRINTFUL_API_BASE,
        printful_timeout_seconds=timeout,
        admin_api_key=os.getenv("ADMIN_API_KEY"),
        public_base_url=os.getenv("PUBLIC_BASE_URL") or "http://localhost:3000",
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
