"""HTTP-level tests for the auth and retake routes."""

import asyncio
import unittest

from fastapi.testclient import TestClient

from api.main import app
from auth.dependencies import get_auth_service, get_rate_limiter, get_retake_gate
from auth.stores.memory_store import MemoryRateLimiter
from tests.fakes import Harness

API = "/api/v1"


def _bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


class ApiCase(unittest.TestCase):
    def setUp(self):
        self.h = Harness()
        asyncio.run(self.h.seed_user("a@x.com", "pw", department="Tax"))
        asyncio.run(self.h.seed_user("b@x.com", "pw", department="Audit"))
        asyncio.run(self.h.seed_user("admin@x.com", "admin-pw", department="IT", is_admin=True))

        limiter = MemoryRateLimiter()
        app.dependency_overrides[get_auth_service] = lambda: self.h.auth
        app.dependency_overrides[get_retake_gate] = lambda: self.h.retakes
        app.dependency_overrides[get_rate_limiter] = lambda: limiter
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()

    def login(self, email="a@x.com", password="pw") -> dict:
        response = self.client.post(f"{API}/auth/login", json={"email": email, "password": password})
        self.assertEqual(response.status_code, 200, response.text)
        return response.json()["data"]


class TestAuthRoutes(ApiCase):
    def test_login_then_expired_access_then_refresh(self):
        tokens = self.login()
        self.assertEqual(tokens["token_type"], "bearer")
        self.assertEqual(tokens["expires_in"], 900)
        self.assertEqual(tokens["user"]["department"], "Tax")

        me = self.client.get(f"{API}/auth/me", headers=_bearer(tokens["access_token"]))
        self.assertEqual(me.status_code, 200)
        self.assertEqual(me.json()["data"]["user"]["email"], "a@x.com")

        self.h.clock.advance(minutes=16)
        expired = self.client.get(f"{API}/auth/me", headers=_bearer(tokens["access_token"]))
        self.assertEqual(expired.status_code, 401)
        self.assertEqual(expired.json()["code"], "TOKEN_EXPIRED")
        self.assertEqual(expired.headers["www-authenticate"], "Bearer")

        refreshed = self.client.post(
            f"{API}/auth/refresh", json={"refresh_token": tokens["refresh_token"]}
        )
        self.assertEqual(refreshed.status_code, 200, refreshed.text)
        new_access = refreshed.json()["data"]["access_token"]

        retry = self.client.get(f"{API}/auth/me", headers=_bearer(new_access))
        self.assertEqual(retry.status_code, 200)

    def test_bad_credentials(self):
        unknown = self.client.post(f"{API}/auth/login", json={"email": "ghost@x.com", "password": "pw"})
        wrong = self.client.post(f"{API}/auth/login", json={"email": "a@x.com", "password": "nope"})

        self.assertEqual(unknown.status_code, 401)
        self.assertEqual(unknown.json(), wrong.json())
        self.assertEqual(unknown.json()["code"], "INVALID_CREDENTIALS")

    def test_missing_and_garbled_tokens(self):
        missing = self.client.get(f"{API}/auth/me")
        self.assertEqual(missing.status_code, 401)
        self.assertEqual(missing.json()["code"], "UNAUTHENTICATED")

        garbled = self.client.get(f"{API}/auth/me", headers=_bearer("garbage"))
        self.assertEqual(garbled.status_code, 403)

    def test_refresh_validation(self):
        missing = self.client.post(f"{API}/auth/refresh", json={})
        self.assertEqual(missing.status_code, 401)

        garbled = self.client.post(f"{API}/auth/refresh", json={"refresh_token": "garbage"})
        self.assertEqual(garbled.status_code, 403)
        self.assertEqual(garbled.json()["code"], "INVALID_REFRESH")

        bare = self.client.post(f"{API}/auth/refresh")
        self.assertEqual(bare.status_code, 401)
        self.assertEqual(bare.json()["code"], "UNAUTHENTICATED")

    def test_refresh_after_inactivity(self):
        tokens = self.login()
        self.h.clock.advance(minutes=31)

        response = self.client.post(
            f"{API}/auth/refresh", json={"refresh_token": tokens["refresh_token"]}
        )
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["code"], "SESSION_EXPIRED")

    def test_logout_all(self):
        first = self.login()
        second = self.login()

        response = self.client.post(f"{API}/auth/logout-all", headers=_bearer(first["access_token"]))
        self.assertEqual(response.json()["data"]["revoked_sessions"], 2)

        replay = self.client.post(
            f"{API}/auth/refresh", json={"refresh_token": second["refresh_token"]}
        )
        self.assertEqual(replay.status_code, 403)

    def test_session_status_and_heartbeat(self):
        tokens = self.login()
        headers = _bearer(tokens["access_token"])
        self.h.clock.advance(minutes=5)

        status = self.client.get(f"{API}/auth/session-status", headers=headers)
        self.assertEqual(status.status_code, 200)
        self.assertEqual(status.json()["data"]["time_until_expiry"], 25 * 60)

        beat = self.client.post(f"{API}/auth/session/heartbeat", headers=headers)
        self.assertEqual(beat.status_code, 200)
        status = self.client.get(f"{API}/auth/session-status", headers=headers)
        self.assertEqual(status.json()["data"]["time_until_expiry"], 30 * 60)

    def test_register_validation_returns_400(self):
        response = self.client.post(
            f"{API}/auth/register", json={"email": "not-an-email", "password": "secret1", "department": "Tax"}
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["code"], "INVALID_REQUEST")

        created = self.client.post(
            f"{API}/auth/register", json={"email": "c@x.com", "password": "secret1", "department": "Tax"}
        )
        self.assertEqual(created.status_code, 201)

    def test_over_long_passwords_are_rejected(self):
        register = self.client.post(
            f"{API}/auth/register", json={"email": "c@x.com", "password": "p" * 100, "department": "Tax"}
        )
        self.assertEqual(register.status_code, 400)
        self.assertEqual(register.json()["code"], "INVALID_REQUEST")

        tokens = self.login()
        reset = self.client.post(
            f"{API}/auth/password-reset",
            json={"email": "a@x.com", "new_password": "\u00e9" * 50},
            headers=_bearer(tokens["access_token"]),
        )
        self.assertEqual(reset.status_code, 400)
        self.assertEqual(reset.json()["code"], "INVALID_REQUEST")

    def test_contact_admin_for_reset(self):
        tokens = self.login()
        response = self.client.post(
            f"{API}/auth/password-reset/contact-admin",
            json={"reason": "Locked out after three resets"},
            headers=_bearer(tokens["access_token"]),
        )
        self.assertEqual(response.status_code, 201)
        request_id = response.json()["data"]["request_id"]

        admin = self.login("admin@x.com", "admin-pw")
        logs = self.client.get(f"{API}/audit/logs", headers=_bearer(admin["access_token"]))
        entry = logs.json()["data"]["logs"][0]
        self.assertEqual(entry["action"], "reset_help_request")
        self.assertEqual(entry["details"]["request_id"], request_id)

        anonymous = self.client.post(f"{API}/auth/password-reset/contact-admin")
        self.assertEqual(anonymous.status_code, 401)

    def test_login_rate_limit(self):
        for _ in range(5):
            self.client.post(f"{API}/auth/login", json={"email": "a@x.com", "password": "nope"})
        response = self.client.post(f"{API}/auth/login", json={"email": "a@x.com", "password": "pw"})
        self.assertEqual(response.status_code, 429)


class TestAdminRoutes(ApiCase):
    def test_elevate_requires_admin(self):
        tokens = self.login()
        response = self.client.post(
            f"{API}/users/b@x.com/elevate", headers=_bearer(tokens["access_token"])
        )
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["code"], "FORBIDDEN")

    def test_elevate_and_audit(self):
        admin = self.login("admin@x.com", "admin-pw")
        headers = _bearer(admin["access_token"])

        response = self.client.post(f"{API}/users/b@x.com/elevate", headers=headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"], {"email": "b@x.com", "is_admin": True})

        again = self.client.post(f"{API}/users/b@x.com/elevate", headers=headers)
        self.assertEqual(again.status_code, 400)
        self.assertEqual(again.json()["code"], "ALREADY_ADMIN")

        missing = self.client.post(f"{API}/users/ghost@x.com/elevate", headers=headers)
        self.assertEqual(missing.status_code, 404)

        logs = self.client.get(f"{API}/audit/logs", headers=headers)
        self.assertEqual(logs.status_code, 200)
        self.assertEqual(len(logs.json()["data"]["logs"]), 1)

    def test_audit_logs_forbidden_for_users(self):
        tokens = self.login()
        response = self.client.get(f"{API}/audit/logs", headers=_bearer(tokens["access_token"]))
        self.assertEqual(response.status_code, 403)


class TestRetakeRoutes(ApiCase):
    def test_retake_flow(self):
        tokens = self.login("b@x.com")
        headers = _bearer(tokens["access_token"])
        base = f"{API}/users/b@x.com/quizzes/Q1"

        submitted = self.client.post(
            f"{API}/responses", json={"quiz_id": "Q1", "score": 30}, headers=headers
        )
        self.assertEqual(submitted.status_code, 201)
        self.assertEqual(submitted.json()["data"]["retake"]["state"], "cooling")

        status = self.client.get(f"{base}/retake-status", headers=headers)
        self.assertFalse(status.json()["data"]["can_retake"])

        self.h.clock.advance(minutes=20)
        # access token has expired by now
        refreshed = self.client.post(
            f"{API}/auth/refresh", json={"refresh_token": tokens["refresh_token"]}
        )
        self.assertEqual(refreshed.status_code, 200, refreshed.text)
        headers = _bearer(refreshed.json()["data"]["access_token"])
        self.h.clock.advance(minutes=11)

        status = self.client.get(f"{base}/retake-status", headers=headers)
        self.assertTrue(status.json()["data"]["can_retake"])

        started = self.client.post(f"{base}/start-retake", json={"score": 30}, headers=headers)
        self.assertEqual(started.status_code, 200)
        self.assertEqual(started.json()["data"]["attempts_remaining"], 0)

        again = self.client.post(f"{base}/start-retake", json={"score": 30}, headers=headers)
        self.assertEqual(again.status_code, 400)
        self.assertEqual(again.json()["code"], "RETAKE_NOT_ELIGIBLE")

        completed = self.client.post(f"{base}/complete-retake", headers=headers)
        self.assertEqual(completed.status_code, 200)

    def test_passing_submission_has_no_retake(self):
        tokens = self.login("b@x.com")
        response = self.client.post(
            f"{API}/responses", json={"quiz_id": "Q1", "score": 80}, headers=_bearer(tokens["access_token"])
        )
        self.assertIsNone(response.json()["data"]["retake"])

    def test_score_out_of_range(self):
        tokens = self.login("b@x.com")
        response = self.client.post(
            f"{API}/users/b@x.com/quizzes/Q1/start-retake",
            json={"score": 140},
            headers=_bearer(tokens["access_token"]),
        )
        self.assertEqual(response.status_code, 400)

    def test_other_users_retakes_are_off_limits(self):
        tokens = self.login("a@x.com")
        response = self.client.get(
            f"{API}/users/b@x.com/quizzes/Q1/retake-status", headers=_bearer(tokens["access_token"])
        )
        self.assertEqual(response.status_code, 403)

    def test_complete_without_record(self):
        tokens = self.login("b@x.com")
        response = self.client.post(
            f"{API}/users/b@x.com/quizzes/Q9/complete-retake", headers=_bearer(tokens["access_token"])
        )
        self.assertEqual(response.status_code, 404)


if __name__ == "__main__":
    unittest.main()
