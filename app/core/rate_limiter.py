"""
In-memory sliding-window rate limiter for the public auth endpoints.

Advisory only: each process counts on its own. Multi-instance deployments
should move the counters to a shared store.
"""

import logging
import time
from collections import defaultdict
from dataclasses import dataclass
from threading import Lock
from typing import Dict, List, Optional, Tuple

from fastapi import Request

from app.core.errors import RateLimited

logger = logging.getLogger(__name__)


@dataclass
class RateLimitConfig:
    max_requests: int
    window_seconds: int


DEFAULT_LIMITS: Dict[str, RateLimitConfig] = {
    # 5 reset requests per 15 minutes per IP
    "forgot_password_ip": RateLimitConfig(max_requests=5, window_seconds=900),
    # 3 reset requests per hour per email
    "forgot_password_email": RateLimitConfig(max_requests=3, window_seconds=3600),
    # 20 login attempts per 5 minutes per IP
    "login_ip": RateLimitConfig(max_requests=20, window_seconds=300),
}


class RateLimiter:
    """Thread-safe sliding window keyed by ``limit_type:identifier``."""

    def __init__(self, configs: Optional[Dict[str, RateLimitConfig]] = None):
        self._requests: Dict[str, List[float]] = defaultdict(list)
        self._lock = Lock()
        self.configs = dict(configs or DEFAULT_LIMITS)

    def is_allowed(self, limit_type: str, identifier: str) -> Tuple[bool, int]:
        """
        Record a request and report whether it fits in the window.

        Returns:
            Tuple of (is_allowed, retry_after_seconds)
        """
        config = self.configs.get(limit_type)
        if config is None:
            logger.warning(f"Unknown rate limit type: {limit_type}")
            return True, 0

        key = f"{limit_type}:{identifier}"
        with self._lock:
            now = time.time()
            cutoff = now - config.window_seconds
            window = [ts for ts in self._requests[key] if ts > cutoff]

            if len(window) >= config.max_requests:
                self._requests[key] = window
                retry_after = int(window[0] + config.window_seconds - now) + 1
                return False, max(retry_after, 1)

            window.append(now)
            self._requests[key] = window
            return True, 0

    def check(self, limit_type: str, identifier: str) -> None:
        """Raise ``RateLimited`` when the request does not fit."""
        allowed, retry_after = self.is_allowed(limit_type, identifier)
        if not allowed:
            logger.warning(f"Rate limit exceeded for {limit_type}: {identifier[:20]}...")
            raise RateLimited(retry_after)

    def reset(self, limit_type: str, identifier: str) -> None:
        with self._lock:
            self._requests.pop(f"{limit_type}:{identifier}", None)

    def clear(self) -> None:
        with self._lock:
            self._requests.clear()


rate_limiter = RateLimiter()


def get_client_ip(request: Request) -> str:
    """Extract client IP from request, honouring proxy headers."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    if request.client:
        return request.client.host

    return "unknown"
