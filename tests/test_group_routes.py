"""Tests for the study group blueprint routes."""

import unittest

from tests.mock_utils import FirestoreRouteTestCase


class GroupRoutesTestCase(FirestoreRouteTestCase):
    def setUp(self):
        super().setUp()
        self.add_user("u1", "Ann")
        self.add_user("u2", "Ben")
        self.add_user("u3", "Cat")

    def test_routes_require_login(self):
        for method, url in (
            ("post", "/groups/create"),
            ("get", "/groups/g1"),
            ("post", "/groups/g1/join"),
            ("delete", "/groups/g1"),
            ("get", "/groups/g1/requests"),
        ):
            with self.subTest(url=url):
                response = getattr(self.client, method)(url)
                self.assertEqual(response.status_code, 401)

    def test_create_group(self):
        self.login("u1")
        response = self.client.post(
            "/groups/create",
            json={
                "name": "Midterm Prep",
                "course": "cs 31",
                "maxMembers": 3,
                "isPublic": False,
                "memberIds": ["u2"],
            },
        )
        self.assertEqual(response.status_code, 201)
        group = response.get_json()["data"]["group"]
        self.assertEqual(group["members"], ["u1", "u2"])
        self.assertEqual(group["courses"], ["CS 31"])
        self.assertFalse(group["isPublic"])

    def test_create_group_defaults_to_public(self):
        self.login("u1")
        response = self.client.post(
            "/groups/create",
            json={"name": "Prep", "course": "CS 31", "maxMembers": 2},
        )
        self.assertTrue(response.get_json()["data"]["group"]["isPublic"])

    def test_create_group_validation(self):
        self.login("u1")
        for payload in (
            {"name": "Prep", "course": "CS 31", "maxMembers": 1},
            {"name": "Prep", "course": "CS 31"},
            {"name": "", "course": "CS 31", "maxMembers": 4},
            {"name": "Prep", "course": "CS 31", "maxMembers": 4, "isPublic": "yes"},
            {"name": "Prep", "course": "CS 31", "maxMembers": 4, "memberIds": "u2"},
            {
                "name": "Prep",
                "course": "CS 31",
                "maxMembers": 2,
                "memberIds": ["u2", "u3"],
            },
        ):
            with self.subTest(payload=payload):
                response = self.client.post("/groups/create", json=payload)
                self.assertEqual(response.status_code, 400)
                self.assertEqual(response.get_json()["error"], "validation_error")

    def test_view_group(self):
        self.add_group("g1", "u1", members=["u1", "u2"])
        self.login("u3")
        group = self.client.get("/groups/g1").get_json()["data"]["group"]
        self.assertEqual(
            group["memberNames"],
            [{"id": "u1", "name": "Ann"}, {"id": "u2", "name": "Ben"}],
        )

    def test_view_missing_group(self):
        self.login("u1")
        response = self.client.get("/groups/nope")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json()["error"], "not_found")

    def test_join_and_leave(self):
        self.add_group("g1", "u1")
        self.login("u2")

        response = self.client.post("/groups/g1/join")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["data"]["group"]["members"], ["u1", "u2"])

        response = self.client.post("/groups/g1/join")
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.get_json()["error"], "conflict")

        response = self.client.post("/groups/g1/leave")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.group_data("g1")["members"], ["u1"])

    def test_join_errors(self):
        self.add_group("full", "u1", members=["u1", "u2"], maxMembers=2)
        self.add_group("private", "u1", isPublic=False)
        self.login("u3")

        response = self.client.post("/groups/full/join")
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.get_json()["error"], "capacity_exceeded")

        response = self.client.post("/groups/private/join")
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.get_json()["error"], "permission_denied")

    def test_last_member_leaving_deletes_group(self):
        self.add_group("g1", "u1")
        self.login("u1")
        response = self.client.post("/groups/g1/leave")
        self.assertEqual(response.status_code, 200)
        self.assertIsNone(response.get_json()["data"])
        self.assertEqual(self.client.get("/groups/g1").status_code, 404)

    def test_kick_rename_and_visibility(self):
        self.add_group("g1", "u1", members=["u1", "u2", "u3"])
        self.login("u1")

        response = self.client.post("/groups/g1/kick", json={"userId": "u3"})
        self.assertEqual(response.get_json()["data"]["group"]["members"], ["u1", "u2"])

        response = self.client.post("/groups/g1/kick", json={"userId": "u1"})
        self.assertEqual(response.status_code, 400)

        response = self.client.post("/groups/g1/rename", json={"name": "Finals"})
        self.assertEqual(response.get_json()["data"]["group"]["name"], "Finals")

        response = self.client.post("/groups/g1/rename", json={"name": "x" * 51})
        self.assertEqual(response.status_code, 400)

        response = self.client.post("/groups/g1/visibility")
        self.assertFalse(response.get_json()["data"]["group"]["isPublic"])

    def test_only_creator_can_kick(self):
        self.add_group("g1", "u1", members=["u1", "u2", "u3"])
        self.login("u2")
        response = self.client.post("/groups/g1/kick", json={"userId": "u3"})
        self.assertEqual(response.status_code, 403)

    def test_delete_group(self):
        self.add_group("g1", "u1", members=["u1", "u2"])
        self.login("u2")
        self.assertEqual(self.client.delete("/groups/g1").status_code, 403)

        self.login("u1")
        self.assertEqual(self.client.delete("/groups/g1").status_code, 200)
        self.assertFalse(self.group_doc("g1").exists)

    def test_list_groups(self):
        self.add_group("g1", "u1", members=["u1", "u2"], courses=["CS 31"])
        self.add_group("g2", "u3", courses=["MATH 31B"])
        self.login("u2")

        groups = self.client.get("/groups/user/u2").get_json()["data"]["groups"]
        self.assertEqual([g["id"] for g in groups], ["g1"])

        groups = self.client.get("/groups/course/math31b").get_json()["data"]["groups"]
        self.assertEqual([g["id"] for g in groups], ["g2"])

    def test_join_request_flow(self):
        self.add_group("g1", "u1", maxMembers=2, isPublic=False)

        self.login("u2")
        response = self.client.post("/groups/g1/requests", json={"message": "Hi"})
        self.assertEqual(response.status_code, 201)
        request_id = response.get_json()["data"]["request"]["id"]

        response = self.client.post("/groups/g1/requests", json={})
        self.assertEqual(response.status_code, 409)

        mine = self.client.get("/groups/requests/mine").get_json()["data"]["requests"]
        self.assertEqual([r["id"] for r in mine], [request_id])

        self.assertEqual(self.client.get("/groups/g1/requests").status_code, 403)

        self.login("u1")
        pending = self.client.get("/groups/g1/requests").get_json()["data"]["requests"]
        self.assertEqual([r["userId"] for r in pending], ["u2"])

        response = self.client.post(f"/groups/g1/requests/{request_id}/accept")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["data"]["group"]["members"], ["u1", "u2"])

        self.login("u3")
        response = self.client.post("/groups/g1/requests")
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.get_json()["error"], "capacity_exceeded")

    def test_reject_request(self):
        self.add_group("g1", "u1", isPublic=False)
        self.login("u2")
        self.client.post("/groups/g1/requests")

        self.login("u1")
        response = self.client.post("/groups/g1/requests/g1_u2/reject")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["data"]["request"]["status"], "rejected")
        self.assertEqual(self.group_data("g1")["members"], ["u1"])

    def test_unknown_route_returns_json(self):
        response = self.client.get("/no/such/route")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json()["error"], "not_found")

    def test_wrong_method_returns_json(self):
        self.login("u1")
        response = self.client.put("/groups/create")
        self.assertEqual(response.status_code, 405)
        self.assertEqual(response.get_json()["error"], "method_not_allowed")


if __name__ == "__main__":
    unittest.main()
