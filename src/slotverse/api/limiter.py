"""Shared slowapi rate-limiter singleton.

Kept in its own module so route modules can decorate handlers without
importing ``main.py`` (which imports every route module).

Usage in route modules::

    from slotverse.api.limiter import limiter

    @router.post("/api/scrape-jobs")
    @limiter.limit("30/minute")
    async def submit_scrape_job(request: Request, ...):
        ...

The ``request`` parameter **must** be present in the route function
signature for slowapi to resolve the rate-limit key.
"""

from __future__ import annotations

from slowapi import Limiter
from slowapi.util import get_remote_address

#: Per-address limit applied to every ingress route.
INGRESS_RATE_LIMIT: str = "30/minute"

limiter: Limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["100/minute"],
)
"""Global rate-limiter instance.

Default limit: 100 requests/minute per IP address (enforced globally via
``SlowAPIMiddleware`` registered in ``main.create_app()``).  Chat platforms
call the webhooks from a small pool of addresses, so the ingress limit is a
flood guard, not a per-user quota; per-user quotas live in the dispatcher.
"""
