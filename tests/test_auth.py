from datetime import timedelta
from unittest.mock import patch
from uuid import uuid4

from tests.api_base import ApiTestBase

from bootcamp_api.core.config import settings
from bootcamp_api.core.security import create_user_token, decode_user_token, hash_password, verify_password
from bootcamp_api.models.user import User
from bootcamp_api.services.rate_limit import InMemoryRateLimiter, RedisRateLimiter, login_rate_limit_key

AUTH_URL = "/api/v1/auth"


class SecurityHelpersTests(ApiTestBase):
    def test_password_hash_round_trip(self):
        hashed = hash_password("secret123")
        self.assertNotEqual(hashed, "secret123")
        self.assertTrue(verify_password("secret123", hashed))
        self.assertFalse(verify_password("wrong", hashed))
        self.assertFalse(verify_password("secret123", ""))

    def test_token_carries_subject_and_role(self):
        claims = decode_user_token(create_user_token("abc", "publisher"))
        self.assertEqual(claims["sub"], "abc")
        self.assertEqual(claims["role"], "publisher")
        self.assertGreater(claims["exp"], claims["iat"])

    def test_in_memory_limiter_counts_per_key(self):
        limiter = InMemoryRateLimiter()
        results = [limiter.hit("k", limit=2, window_seconds=60) for _ in range(3)]
        self.assertEqual([r.allowed for r in results], [True, True, False])
        self.assertTrue(limiter.hit("other", limit=2, window_seconds=60).allowed)
        self.assertGreater(results[-1].retry_after_seconds, 0)

    def test_rate_limit_key_ignores_email_case(self):
        self.assertEqual(
            login_rate_limit_key("A@Example.com", "1.2.3.4"),
            login_rate_limit_key("a@example.com ", "1.2.3.4"),
        )
        self.assertNotEqual(
            login_rate_limit_key("a@example.com", "1.2.3.4"),
            login_rate_limit_key("a@example.com", "5.6.7.8"),
        )


class AuthApiTests(ApiTestBase):
    def _register(self, **overrides):
        payload = {"name": "John Doe", "email": "john@gmail.com", "password": "123456", "role": "publisher"}
        payload.update(overrides)
        return self.client.post(f"{AUTH_URL}/register", json=payload)

    def test_register_returns_token_and_cookie(self):
        response = self._register()
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body["success"])
        self.assertEqual(response.cookies.get("token"), body["token"])
        claims = decode_user_token(body["token"])
        self.assertEqual(claims["role"], "publisher")

        with self.SessionLocal() as db:
            user = db.query(User).filter(User.email == "john@gmail.com").one()
            self.assertNotEqual(user.password_hash, "123456")
            self.assertEqual(str(user.id), claims["sub"])

    def test_register_rejects_admin_role_and_bad_fields(self):
        self.assertEqual(self._register(role="admin").status_code, 422)
        self.assertEqual(self._register(email="not-an-email").status_code, 422)
        self.assertEqual(self._register(password="123").status_code, 422)

    def test_register_duplicate_email_is_400(self):
        self.assertEqual(self._register().status_code, 200)
        response = self._register(email="JOHN@gmail.com")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Email is already registered")

    def test_login_and_me(self):
        self._register()
        response = self.client.post(f"{AUTH_URL}/login", json={"email": "john@gmail.com", "password": "123456"})
        self.assertEqual(response.status_code, 200)
        token = response.json()["token"]

        me = self.client.get(f"{AUTH_URL}/me", headers={"Authorization": f"Bearer {token}"})
        self.assertEqual(me.status_code, 200)
        data = me.json()["data"]
        self.assertEqual(data["email"], "john@gmail.com")
        self.assertEqual(data["role"], "publisher")
        self.assertNotIn("password_hash", data)

    def test_login_requires_both_fields(self):
        response = self.client.post(f"{AUTH_URL}/login", json={"email": "john@gmail.com"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Please provide an email and password")

    def test_login_with_wrong_password_is_401(self):
        self._register()
        response = self.client.post(f"{AUTH_URL}/login", json={"email": "john@gmail.com", "password": "nope12"})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["detail"], "Invalid credentials")
        response = self.client.post(f"{AUTH_URL}/login", json={"email": "ghost@gmail.com", "password": "123456"})
        self.assertEqual(response.status_code, 401)

    def test_login_is_rate_limited(self):
        self._register()
        payload = {"email": "john@gmail.com", "password": "wrong-password"}
        statuses = [self.client.post(f"{AUTH_URL}/login", json=payload).status_code for _ in range(11)]
        self.assertEqual(statuses[:10], [401] * 10)
        self.assertEqual(statuses[10], 429)

        blocked = self.client.post(f"{AUTH_URL}/login", json={"email": "john@gmail.com", "password": "123456"})
        self.assertEqual(blocked.status_code, 429)
        self.assertTrue(blocked.headers.get("retry-after"))

    def test_forwarded_for_header_is_ignored_by_default(self):
        self._register()
        payload = {"email": "john@gmail.com", "password": "wrong-password"}
        statuses = [
            self.client.post(
                f"{AUTH_URL}/login", json=payload, headers={"X-Forwarded-For": f"203.0.113.{n}"}
            ).status_code
            for n in range(11)
        ]
        self.assertEqual(statuses[10], 429)

    def test_forwarded_for_header_keys_the_limit_behind_a_trusted_proxy(self):
        self._register()
        payload = {"email": "john@gmail.com", "password": "wrong-password"}
        with patch.object(settings, "TRUST_PROXY_HEADERS", True):
            for _ in range(10):
                self.client.post(f"{AUTH_URL}/login", json=payload, headers={"X-Forwarded-For": "203.0.113.1"})
            blocked = self.client.post(
                f"{AUTH_URL}/login", json=payload, headers={"X-Forwarded-For": "203.0.113.1, 10.0.0.1"}
            )
            other = self.client.post(f"{AUTH_URL}/login", json=payload, headers={"X-Forwarded-For": "198.51.100.7"})
        self.assertEqual(blocked.status_code, 429)
        self.assertEqual(other.status_code, 401)

    def test_me_rejects_missing_bad_expired_or_inactive_tokens(self):
        self.assertEqual(self.client.get(f"{AUTH_URL}/me").status_code, 401)
        bad = self.client.get(f"{AUTH_URL}/me", headers={"Authorization": "Bearer garbage"})
        self.assertEqual(bad.status_code, 401)
        self.assertEqual(bad.json()["detail"], "Not authorized to access this route")

        user = self._create_user("user")
        expired = create_user_token(str(user.id), user.role, expires_delta=timedelta(seconds=-5))
        self.assertEqual(self.client.get(f"{AUTH_URL}/me", headers={"Authorization": f"Bearer {expired}"}).status_code, 401)

        ghost = create_user_token(str(uuid4()), "user")
        self.assertEqual(self.client.get(f"{AUTH_URL}/me", headers={"Authorization": f"Bearer {ghost}"}).status_code, 401)

        with self.SessionLocal() as db:
            db.get(User, user.id).is_active = False
            db.commit()
        token = create_user_token(str(user.id), user.role)
        self.assertEqual(self.client.get(f"{AUTH_URL}/me", headers={"Authorization": f"Bearer {token}"}).status_code, 401)


class _FakePipeline:
    def __init__(self, store: dict):
        self.store = store
        self.ops = []

    def incr(self, key):
        self.ops.append(("incr", key))

    def expire(self, key, seconds, nx=False):
        self.ops.append(("expire", key, seconds, nx))

    def ttl(self, key):
        self.ops.append(("ttl", key))

    def execute(self):
        out = []
        for op in self.ops:
            if op[0] == "incr":
                self.store[op[1]] = self.store.get(op[1], 0) + 1
                out.append(self.store[op[1]])
            elif op[0] == "expire":
                out.append(True)
            else:
                out.append(-1)
        return out


class _FakeRedis:
    def __init__(self):
        self.store = {}

    def pipeline(self):
        return _FakePipeline(self.store)


class RedisRateLimiterTests(ApiTestBase):
    def test_counts_through_pipeline_and_defaults_ttl_to_window(self):
        limiter = RedisRateLimiter(_FakeRedis())
        first = limiter.hit("rl:login:x", limit=1, window_seconds=300)
        second = limiter.hit("rl:login:x", limit=1, window_seconds=300)
        self.assertTrue(first.allowed)
        self.assertFalse(second.allowed)
        self.assertEqual(second.current_value, 2)
        self.assertEqual(second.retry_after_seconds, 300)
