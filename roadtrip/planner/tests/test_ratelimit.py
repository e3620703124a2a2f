from unittest.mock import patch

from django.test import RequestFactory, SimpleTestCase, override_settings

from rest_framework.response import Response

from roadtrip.planner.ratelimit import RateLimitRule, SlidingWindowRateLimiter, get_client_ip, rate_limited


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms


class SlidingWindowRateLimiterTests(SimpleTestCase):

    def setUp(self):
        self.clock = FakeClock(1_000_000)
        self.limiter = SlidingWindowRateLimiter(clock=self.clock)
        self.rule = RateLimitRule(limit=3, window_ms=60_000)

    def test_admits_exactly_limit_then_denies(self):
        results = [self.limiter.check("ip:1", self.rule) for _ in range(3)]

        self.assertTrue(all(r.allowed for r in results))
        self.assertEqual([r.remaining for r in results], [2, 1, 0])

        denied = self.limiter.check("ip:1", self.rule)
        self.assertFalse(denied.allowed)
        self.assertEqual(denied.remaining, 0)
        self.assertGreater(denied.reset_in_ms, 0)
        self.assertLessEqual(denied.reset_in_ms, self.rule.window_ms)

    def test_admits_again_after_reset(self):
        for _ in range(3):
            self.limiter.check("ip:1", self.rule)
        self.clock.advance(20_000)
        denied = self.limiter.check("ip:1", self.rule)
        self.assertEqual(denied.reset_in_ms, 40_000)

        self.clock.advance(denied.reset_in_ms)

        self.assertTrue(self.limiter.check("ip:1", self.rule).allowed)

    def test_window_slides(self):
        self.limiter.check("ip:1", self.rule)
        self.clock.advance(30_000)
        self.limiter.check("ip:1", self.rule)
        self.limiter.check("ip:1", self.rule)

        self.assertFalse(self.limiter.check("ip:1", self.rule).allowed)

        # only the first admission has left the window
        self.clock.advance(30_000)
        self.assertTrue(self.limiter.check("ip:1", self.rule).allowed)
        self.assertFalse(self.limiter.check("ip:1", self.rule).allowed)

    def test_keys_are_independent(self):
        for _ in range(3):
            self.limiter.check("ip:1", self.rule)

        self.assertTrue(self.limiter.check("ip:2", self.rule).allowed)

    def test_cleanup_drops_idle_keys(self):
        self.limiter.check("ip:1", self.rule)
        self.limiter.check("ip:2", self.rule)
        self.assertEqual(len(self.limiter), 2)

        self.clock.advance(61_000)
        self.limiter.check("ip:3", self.rule)

        self.assertNotIn("ip:1", self.limiter)
        self.assertNotIn("ip:2", self.limiter)
        self.assertIn("ip:3", self.limiter)

    def test_cleanup_evicts_oldest_keys_over_capacity(self):
        limiter = SlidingWindowRateLimiter(max_keys=10, clock=self.clock)
        rule = RateLimitRule(limit=5, window_ms=600_000)

        for i in range(15):
            limiter.check(f"ip:{i}", rule)
            self.clock.advance(1)

        self.clock.advance(60_000)
        limiter.check("ip:new", rule)

        self.assertLessEqual(len(limiter), 9)
        self.assertNotIn("ip:0", limiter)
        self.assertIn("ip:14", limiter)
        self.assertIn("ip:new", limiter)

    def test_reset_clears_table(self):
        self.limiter.check("ip:1", self.rule)
        self.limiter.reset()

        self.assertEqual(len(self.limiter), 0)


class ClientIpTests(SimpleTestCase):

    def setUp(self):
        self.factory = RequestFactory()

    def test_ignores_forwarded_for_by_default(self):
        request = self.factory.get("/", HTTP_X_FORWARDED_FOR="6.6.6.6", REMOTE_ADDR="10.0.0.1")

        self.assertEqual(get_client_ip(request), "10.0.0.1")

    @override_settings(RATE_LIMIT_TRUSTED_IP_HEADER="HTTP_X_REAL_CLIENT_IP")
    def test_uses_trusted_header_first_hop(self):
        request = self.factory.get("/", HTTP_X_REAL_CLIENT_IP="1.2.3.4, 10.0.0.1", REMOTE_ADDR="10.0.0.1")

        self.assertEqual(get_client_ip(request), "1.2.3.4")

    def test_anonymous_without_address(self):
        request = self.factory.get("/")
        request.META.pop("REMOTE_ADDR", None)

        self.assertEqual(get_client_ip(request), "anonymous")


class RateLimitedDecoratorTests(SimpleTestCase):

    class View:
        @rate_limited("roadtrip")
        def post(self, request):
            return Response({"ok": True})

    def setUp(self):
        self.clock = FakeClock(0)
        self.limiter = SlidingWindowRateLimiter(clock=self.clock)
        patcher = patch("roadtrip.planner.apps.get_rate_limiter", return_value=self.limiter)
        patcher.start()
        self.addCleanup(patcher.stop)
        self.request = RequestFactory().post("/", REMOTE_ADDR="10.0.0.9")

    def test_adds_headers_and_returns_429_when_exhausted(self):
        view = self.View()

        for i in range(10):
            response = view.post(self.request)
            self.assertEqual(response.status_code, 200)
            self.assertEqual(response["X-RateLimit-Limit"], "10")
            self.assertEqual(response["X-RateLimit-Remaining"], str(9 - i))

        response = view.post(self.request)

        self.assertEqual(response.status_code, 429)
        self.assertEqual(response["Retry-After"], "60")
        self.assertEqual(response.data["retry_after_seconds"], 60)
        self.assertIn("roadtrip:10.0.0.9", self.limiter)
