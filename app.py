"""
App assembly entry point.

Re-exports the FastAPI `app` from `billia.api.main` for `uvicorn app:app`.
"""

from billia.api.main import app  # noqa: F401
