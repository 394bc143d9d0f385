"""DEV_MODE guard.

Dev mode signs every request in as the fixed dev user. It is only honoured
while the frontend base URL (the one quote accept links are built from) is a
local address, so a deployment that hands links to real customers can never
run with it.
"""

import os
from typing import FrozenSet
from urllib.parse import urlparse

from billia.utils.urls import get_app_base_url

LOCAL_HOSTS: FrozenSet[str] = frozenset({"localhost", "127.0.0.1", "::1"})


def dev_mode_requested() -> bool:
    return os.getenv("DEV_MODE", "false").strip().lower() == "true"


def dev_host_allowlist() -> FrozenSet[str]:
    """Local hosts plus the comma-separated DEV_MODE_ALLOWED_HOSTS."""
    extra = {h.strip().lower() for h in os.getenv("DEV_MODE_ALLOWED_HOSTS", "").split(",") if h.strip()}
    return LOCAL_HOSTS | extra


def dev_mode_active() -> bool:
    """True when DEV_MODE is on; RuntimeError when the app base URL is public."""
    if not dev_mode_requested():
        return False
    base_url = get_app_base_url()
    host = (urlparse(base_url).hostname or "").lower()
    allowed = dev_host_allowlist()
    if host not in allowed:
        raise RuntimeError(
            f"DEV_MODE=true is refused: quote links would point customers at {base_url}. "
            f"Dev mode needs APP_BASE_URL on one of {sorted(allowed)}"
        )
    return True
