"""
URL utilities for building absolute links handed to customers.

Primary source: APP_BASE_URL (e.g., https://app.billia.jp)
Fallback: APP_HOST for compatibility (adds scheme heuristically if missing).
"""
from __future__ import annotations

import os


def _add_scheme_if_missing(host: str) -> str:
    h = host.strip()
    if not h:
        return "http://localhost:3000"
    if h.startswith("http://") or h.startswith("https://"):
        return h
    # Simple heuristic: use http for localhost, otherwise https
    lower = h.lower()
    if lower.startswith("localhost") or lower.startswith("127.0.0.1"):
        return f"http://{h}"
    return f"https://{h}"


def _strip_trailing_slash(url: str) -> str:
    return url[:-1] if url.endswith("/") else url


def get_app_base_url() -> str:
    """Return normalized base URL for the frontend application.

    Precedence:
    1. APP_BASE_URL (recommended)
    2. APP_HOST (legacy), with a scheme added if missing
    Defaults to http://localhost:3000 if neither is set.
    """
    base = os.getenv("APP_BASE_URL")
    if base and base.strip():
        return _strip_trailing_slash(base.strip())
    host = os.getenv("APP_HOST")
    if host and host.strip():
        full = _add_scheme_if_missing(host.strip())
        return _strip_trailing_slash(full)
    return "http://localhost:3000"


def build_quote_accept_link(token: str) -> str:
    """Public page where a customer signs off on a quote."""
    return f"{get_app_base_url()}/accept/{token}"
