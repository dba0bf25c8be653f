import math

from tests.support import ApiTestCase, create_member, create_trainer, fetch

from ptbuddy.models import CommunityComment, CommunityPost


class CommunityBoardTests(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.trainer = create_trainer(name="Coach Yoon")
        self.login(self.trainer.email)

    def _post(self, title: str = "Deadlift form", **extra) -> dict:
        response = self.client.post(
            "/community/posts",
            json={"title": title, "content": "Keep the bar close.", **extra},
        )
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()

    def _switch_to(self, email: str, role: str = "trainer") -> None:
        self.logout()
        self.login(email, role=role)

    def test_create_post_records_author(self) -> None:
        post = self._post()
        self.assertEqual(post["authorId"], self.trainer.id)
        self.assertEqual(post["authorName"], "Coach Yoon")
        self.assertEqual(post["commentCount"], 0)
        self.assertFalse(post["isNotice"])

    def test_anonymous_cannot_post(self) -> None:
        self.logout()
        response = self.client.post("/community/posts", json={"title": "Hi", "content": "There"})
        self.assertEqual(response.status_code, 401)

    def test_only_admin_can_post_notices(self) -> None:
        denied = self.client.post(
            "/community/posts",
            json={"title": "Notice", "content": "Gym closed", "isNotice": True},
        )
        self.assertEqual(denied.status_code, 403)

        admin = create_trainer(role="admin")
        self._switch_to(admin.email, role="admin")
        notice = self._post(title="Notice", isNotice=True, isPinned=True)
        self.assertTrue(notice["isNotice"])
        self.assertTrue(notice["isPinned"])

    def test_list_pins_first_and_paginates(self) -> None:
        admin = create_trainer(role="admin")
        self._switch_to(admin.email, role="admin")
        pinned = self._post(title="Pinned rules", isPinned=True)
        self._switch_to(self.trainer.email)
        self._post(title="Second")
        latest = self._post(title="Third")

        response = self.client.get("/community/posts", params={"page": 1, "limit": 2})
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["posts"][0]["id"], pinned["id"])
        self.assertEqual(body["posts"][1]["id"], latest["id"])
        self.assertEqual(body["pagination"]["page"], 1)
        self.assertEqual(body["pagination"]["limit"], 2)
        self.assertGreaterEqual(body["pagination"]["total"], 3)
        self.assertEqual(
            body["pagination"]["totalPages"],
            math.ceil(body["pagination"]["total"] / 2),
        )

    def test_limit_is_capped(self) -> None:
        self.assertEqual(self.client.get("/community/posts", params={"limit": 101}).status_code, 400)

    def test_reading_post_counts_views(self) -> None:
        post = self._post()
        first = self.client.get(f"/community/posts/{post['id']}")
        second = self.client.get(f"/community/posts/{post['id']}")
        self.assertEqual(first.json()["viewCount"], 1)
        self.assertEqual(second.json()["viewCount"], 2)

    def test_comments_are_listed_and_counted(self) -> None:
        post = self._post()
        member = create_member(self.trainer.id, name="Han Member")
        self._switch_to(member.email, role="member")

        comment = self.client.post(f"/community/posts/{post['id']}/comments", json={"content": "Thanks!"})
        self.assertEqual(comment.status_code, 201)
        self.assertEqual(comment.json()["authorRole"], "member")

        detail = self.client.get(f"/community/posts/{post['id']}").json()
        self.assertEqual(detail["commentCount"], 1)
        self.assertEqual([c["content"] for c in detail["comments"]], ["Thanks!"])

        listing = self.client.get("/community/posts", params={"limit": 100}).json()
        counts = {p["id"]: p["commentCount"] for p in listing["posts"]}
        self.assertEqual(counts[post["id"]], 1)

    def test_only_author_or_admin_can_edit(self) -> None:
        post = self._post()
        other = create_trainer()
        self._switch_to(other.email)
        denied = self.client.patch(f"/community/posts/{post['id']}", json={"title": "Mine now"})
        self.assertEqual(denied.status_code, 403)

        self._switch_to(self.trainer.email)
        edited = self.client.patch(f"/community/posts/{post['id']}", json={"title": "Deadlift cues"})
        self.assertEqual(edited.status_code, 200)
        self.assertEqual(edited.json()["title"], "Deadlift cues")

        pin = self.client.patch(f"/community/posts/{post['id']}", json={"isPinned": True})
        self.assertEqual(pin.status_code, 403)

    def test_delete_is_soft(self) -> None:
        post = self._post()
        response = self.client.delete(f"/community/posts/{post['id']}")
        self.assertEqual(response.status_code, 200)

        self.assertEqual(self.client.get(f"/community/posts/{post['id']}").status_code, 404)
        self.assertIsNotNone(fetch(CommunityPost, post["id"]).deleted_at)

    def test_admin_can_delete_any_comment(self) -> None:
        post = self._post()
        comment = self.client.post(f"/community/posts/{post['id']}/comments", json={"content": "Nice"}).json()

        other = create_trainer()
        self._switch_to(other.email)
        self.assertEqual(self.client.delete(f"/community/comments/{comment['id']}").status_code, 403)

        admin = create_trainer(role="admin")
        self._switch_to(admin.email, role="admin")
        self.assertEqual(self.client.delete(f"/community/comments/{comment['id']}").status_code, 200)
        self.assertIsNotNone(fetch(CommunityComment, comment["id"]).deleted_at)

        detail = self.client.get(f"/community/posts/{post['id']}").json()
        self.assertEqual(detail["comments"], [])

    def test_reading_the_board_requires_a_session(self) -> None:
        post = self._post()
        self.logout()
        self.assertEqual(self.client.get("/community/posts").status_code, 401)
        self.assertEqual(self.client.get(f"/community/posts/{post['id']}").status_code, 401)

    def test_post_likes_toggle_and_are_counted(self) -> None:
        post = self._post()
        liked = self.client.post(f"/community/posts/{post['id']}/likes")
        self.assertEqual(liked.status_code, 200)
        self.assertEqual(liked.json()["likeCount"], 1)
        self.assertTrue(liked.json()["isLiked"])
        self.assertEqual(self.client.post(f"/community/posts/{post['id']}/likes").status_code, 400)

        member = create_member(self.trainer.id)
        self._switch_to(member.email, role="member")
        status = self.client.get(f"/community/posts/{post['id']}/likes").json()
        self.assertEqual(status, {"message": None, "likeCount": 1, "isLiked": False})
        self.assertEqual(self.client.post(f"/community/posts/{post['id']}/likes").json()["likeCount"], 2)

        listing = self.client.get("/community/posts", params={"limit": 100}).json()
        counts = {p["id"]: p["likeCount"] for p in listing["posts"]}
        self.assertEqual(counts[post["id"]], 2)
        detail = self.client.get(f"/community/posts/{post['id']}").json()
        self.assertTrue(detail["isLiked"])

        removed = self.client.delete(f"/community/posts/{post['id']}/likes")
        self.assertEqual(removed.json()["likeCount"], 1)
        self.assertFalse(removed.json()["isLiked"])
        self.assertEqual(self.client.delete(f"/community/posts/{post['id']}/likes").status_code, 400)

    def test_comment_likes_show_on_the_post(self) -> None:
        post = self._post()
        comment = self.client.post(f"/community/posts/{post['id']}/comments", json={"content": "Nice"}).json()

        liked = self.client.post(f"/community/comments/{comment['id']}/likes")
        self.assertEqual(liked.status_code, 200)
        self.assertEqual(liked.json()["likeCount"], 1)

        detail = self.client.get(f"/community/posts/{post['id']}").json()
        self.assertEqual(detail["comments"][0]["likeCount"], 1)
        self.assertEqual(detail["likeCount"], 0)

        self.assertEqual(self.client.delete(f"/community/comments/{comment['id']}/likes").status_code, 200)
        self.client.delete(f"/community/comments/{comment['id']}")
        self.assertEqual(self.client.post(f"/community/comments/{comment['id']}/likes").status_code, 404)
