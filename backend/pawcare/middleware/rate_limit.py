"""
PawCare Backend — Rate Limiting Middleware
============================================

What:  Per-IP sliding window limits, one window per policy.
Why:   Throttles credential guessing on the login endpoints and spam on the
       public booking form without needing accounts.
How:   Each request is matched against every policy. If any matching window
       is full the request is rejected with 429; otherwise a timestamp is
       recorded in every matching window.

Policies (defaults, configurable via settings):
    general  100 requests / 15 min  on everything under /api/ except health
    auth       5 attempts / 15 min  on admin login, customer login, registration;
                                    successful attempts (status < 400) are not counted
    booking   10 requests / 1 hour  on POST /api/bookings

Algorithm: Sliding Window Log
    1. Each (policy, IP) pair keeps a deque of request timestamps
    2. Timestamps older than the window are dropped from the left
    3. If the remaining count >= limit, reject with Retry-After
    4. Otherwise append now and let the request through

Production Upgrade Path:
    State is process-local; with several workers each enforces its own
    window. A shared store (Redis) would make the limits global.
"""

import logging
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, FrozenSet, List, Optional, Tuple

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from pawcare.config import Settings
from pawcare.middleware.request_id import error_body

logger = logging.getLogger(__name__)

AUTH_PATHS = frozenset({"/api/auth/login", "/api/customer/login", "/api/customer/register"})


@dataclass(frozen=True)
class RateLimitPolicy:
    """Which requests a window applies to, and how big the window is."""

    name: str
    limit: int
    window: int
    message: str
    prefix: Optional[str] = None
    paths: FrozenSet[str] = frozenset()
    methods: FrozenSet[str] = frozenset()
    excluded_paths: FrozenSet[str] = frozenset()
    skip_successful: bool = False

    def matches(self, method: str, path: str) -> bool:
        if path in self.excluded_paths:
            return False
        if self.methods and method not in self.methods:
            return False
        if self.paths:
            return path in self.paths
        return self.prefix is not None and path.startswith(self.prefix)


@dataclass
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    retry_after_seconds: int


@dataclass
class SlidingWindowLimiter:
    """Timestamps per client key for one policy."""

    limit: int
    window: int
    _hits: Dict[str, Deque[float]] = field(default_factory=dict)

    def _bucket(self, key: str, now: float) -> Deque[float]:
        bucket = self._hits.setdefault(key, deque())
        cutoff = now - self.window
        while bucket and bucket[0] <= cutoff:
            bucket.popleft()
        return bucket

    def check(self, key: str, now: float) -> RateLimitDecision:
        bucket = self._bucket(key, now)
        if len(bucket) >= self.limit:
            retry_after = max(1, int(self.window - (now - bucket[0])) + 1)
            return RateLimitDecision(False, self.limit, 0, retry_after)
        return RateLimitDecision(True, self.limit, self.limit - len(bucket), 0)

    def record(self, key: str, now: float) -> None:
        self._bucket(key, now).append(now)

    def release(self, key: str, stamp: float) -> None:
        """Forget one recorded hit (used for successful auth attempts)."""
        bucket = self._hits.get(key)
        if bucket is None:
            return
        try:
            bucket.remove(stamp)
        except ValueError:
            # Already aged out of the window
            pass
        if not bucket:
            del self._hits[key]

    def cleanup(self, now: float) -> None:
        cutoff = now - self.window
        stale = [key for key, bucket in self._hits.items() if not bucket or bucket[-1] <= cutoff]
        for key in stale:
            del self._hits[key]


def default_policies(settings: Settings) -> List[RateLimitPolicy]:
    return [
        RateLimitPolicy(
            name="general",
            limit=settings.rate_limit_requests,
            window=settings.rate_limit_window,
            prefix="/api/",
            excluded_paths=frozenset({"/api/health"}),
            message="Too many requests from this IP, please try again later.",
        ),
        RateLimitPolicy(
            name="auth",
            limit=settings.auth_rate_limit_requests,
            window=settings.auth_rate_limit_window,
            paths=AUTH_PATHS,
            methods=frozenset({"POST"}),
            skip_successful=True,
            message="Too many login attempts, please try again after 15 minutes.",
        ),
        RateLimitPolicy(
            name="booking",
            limit=settings.booking_rate_limit_requests,
            window=settings.booking_rate_limit_window,
            paths=frozenset({"/api/bookings"}),
            methods=frozenset({"POST"}),
            message="Too many booking requests, please try again later.",
        ),
    ]


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Applies every matching RateLimitPolicy to each request.

    Response on rate limit:
        HTTP 429 with Retry-After and the standard error envelope.
    """

    CLEANUP_EVERY = 1000

    def __init__(self, app, policies: List[RateLimitPolicy]):
        super().__init__(app)
        self.policies = policies
        self._limiters = {p.name: SlidingWindowLimiter(p.limit, p.window) for p in policies}
        self._seen = 0

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        method = request.method
        path = request.url.path
        matched = [p for p in self.policies if p.matches(method, path)]
        if not matched:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.monotonic()

        for policy in matched:
            decision = self._limiters[policy.name].check(client_ip, now)
            if not decision.allowed:
                logger.warning(
                    "Rate limit '%s' exceeded for IP %s on %s %s (%d per %ds)",
                    policy.name,
                    client_ip,
                    method,
                    path,
                    policy.limit,
                    policy.window,
                )
                return JSONResponse(
                    status_code=429,
                    content=error_body("rate_limit_exceeded", policy.message),
                    headers={"Retry-After": str(decision.retry_after_seconds)},
                )

        recorded: List[Tuple[RateLimitPolicy, float]] = []
        for policy in matched:
            self._limiters[policy.name].record(client_ip, now)
            recorded.append((policy, now))

        self._seen += 1
        if self._seen % self.CLEANUP_EVERY == 0:
            for limiter in self._limiters.values():
                limiter.cleanup(now)

        response = await call_next(request)

        if response.status_code < 400:
            for policy, stamp in recorded:
                if policy.skip_successful:
                    self._limiters[policy.name].release(client_ip, stamp)

        return response
