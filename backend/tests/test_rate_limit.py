"""
PawCare Backend — Rate Limiter Tests
======================================

What we test:
    ✅ Sliding window admits `limit` hits, then rejects with Retry-After
    ✅ Old hits age out of the window
    ✅ Released hits (successful logins) free their slot
    ✅ Policy matching by prefix, exact path, method and exclusions
    ✅ The default policy set built from settings
"""

from pawcare.config import Settings
from pawcare.middleware.rate_limit import (
    AUTH_PATHS,
    RateLimitPolicy,
    SlidingWindowLimiter,
    default_policies,
)


class TestSlidingWindowLimiter:

    def test_admits_up_to_limit(self):
        limiter = SlidingWindowLimiter(limit=3, window=60)
        for i in range(3):
            decision = limiter.check("1.2.3.4", 100.0 + i)
            assert decision.allowed
            assert decision.remaining == 3 - i
            limiter.record("1.2.3.4", 100.0 + i)

        decision = limiter.check("1.2.3.4", 103.0)
        assert not decision.allowed
        assert decision.remaining == 0
        assert 1 <= decision.retry_after_seconds <= 60

    def test_keys_are_independent(self):
        limiter = SlidingWindowLimiter(limit=1, window=60)
        limiter.record("a", 0.0)
        assert not limiter.check("a", 1.0).allowed
        assert limiter.check("b", 1.0).allowed

    def test_hits_expire_after_window(self):
        limiter = SlidingWindowLimiter(limit=1, window=60)
        limiter.record("a", 0.0)
        assert not limiter.check("a", 59.0).allowed
        assert limiter.check("a", 60.5).allowed

    def test_release_frees_slot(self):
        limiter = SlidingWindowLimiter(limit=1, window=60)
        limiter.record("a", 5.0)
        limiter.release("a", 5.0)
        assert limiter.check("a", 6.0).allowed

    def test_release_of_unknown_stamp_is_ignored(self):
        limiter = SlidingWindowLimiter(limit=2, window=60)
        limiter.release("nobody", 1.0)
        limiter.record("a", 1.0)
        limiter.release("a", 2.0)
        assert limiter.check("a", 3.0).remaining == 1

    def test_cleanup_drops_idle_keys(self):
        limiter = SlidingWindowLimiter(limit=5, window=10)
        limiter.record("a", 0.0)
        limiter.record("b", 50.0)
        limiter.cleanup(55.0)
        assert "a" not in limiter._hits
        assert "b" in limiter._hits


class TestRateLimitPolicy:

    def test_prefix_policy_with_exclusion(self):
        policy = RateLimitPolicy(
            name="general", limit=1, window=1, message="m",
            prefix="/api/", excluded_paths=frozenset({"/api/health"}),
        )
        assert policy.matches("GET", "/api/bookings")
        assert not policy.matches("GET", "/api/health")
        assert not policy.matches("GET", "/docs")

    def test_path_and_method_policy(self):
        policy = RateLimitPolicy(
            name="booking", limit=1, window=1, message="m",
            paths=frozenset({"/api/bookings"}), methods=frozenset({"POST"}),
        )
        assert policy.matches("POST", "/api/bookings")
        assert not policy.matches("GET", "/api/bookings")
        assert not policy.matches("POST", "/api/bookings/1")

    def test_default_policies_follow_settings(self):
        settings = Settings(
            _env_file=None,
            auth_rate_limit_requests=7,
            booking_rate_limit_requests=3,
            booking_rate_limit_window=120,
        )
        policies = {p.name: p for p in default_policies(settings)}

        assert set(policies) == {"general", "auth", "booking"}
        assert policies["auth"].limit == 7
        assert policies["auth"].skip_successful
        assert policies["auth"].paths == AUTH_PATHS
        assert policies["booking"].limit == 3
        assert policies["booking"].window == 120
        assert policies["general"].limit == 100
        assert policies["general"].window == 900
