"""Tests for the user blueprint."""

import unittest

from tests.mock_utils import FirestoreRouteTestCase


class UserRoutesTestCase(FirestoreRouteTestCase):
    def setUp(self):
        super().setUp()
        self.add_user("u1", "Ann", passwordHash="hash", coursesSeeking=["CS 31"])
        self.add_user("u2", "Ben", passwordHash="hash")

    def test_profile_requires_login(self):
        response = self.client.get("/user/me")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.get_json()["error"], "unauthorized")

    def test_get_current_user(self):
        self.login("u1")
        user = self.client.get("/user/me").get_json()["data"]["user"]
        self.assertEqual(user["id"], "u1")
        self.assertNotIn("passwordHash", user)

    def test_stale_session_is_cleared(self):
        self.login("deleted-user")
        self.assertEqual(self.client.get("/user/me").status_code, 401)
        with self.client.session_transaction() as sess:
            self.assertNotIn("user_id", sess)

    def test_update_profile(self):
        self.login("u1")
        response = self.client.patch(
            "/user/me",
            json={"bio": "Night owl", "coursesSeeking": ["math31b", "MATH 31B"]},
        )
        self.assertEqual(response.status_code, 200)
        user = response.get_json()["data"]["user"]
        self.assertEqual(user["bio"], "Night owl")
        self.assertEqual(user["coursesSeeking"], ["MATH 31B"])
        self.assertEqual(user["name"], "Ann")

    def test_update_profile_rejects_bad_url(self):
        self.login("u1")
        response = self.client.patch("/user/me", json={"imageUrl": "not a url"})
        self.assertEqual(response.status_code, 400)

    def test_view_other_user(self):
        self.login("u1")
        user = self.client.get("/user/u2").get_json()["data"]["user"]
        self.assertEqual(user["name"], "Ben")
        self.assertNotIn("passwordHash", user)

    def test_view_missing_user(self):
        self.login("u1")
        response = self.client.get("/user/nobody")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json()["error"], "not_found")


if __name__ == "__main__":
    unittest.main()
