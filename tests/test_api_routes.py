import os
import io
import tempfile
import unittest
from unittest.mock import MagicMock, patch


class FakeGateway:
    def __init__(self):
        self.uploads = []
        self.signed = []

    def upload(self, file_storage):
        self.uploads.append(file_storage.read())
        return f"posts/upload-{len(self.uploads)}.jpeg"

    def signed_url(self, object_name):
        self.signed.append(object_name)
        return f"https://storage.test/{object_name}?signature=abc"


class RecordingMinio:
    def __init__(self):
        self.put_calls = []

    def bucket_exists(self, bucket_name):
        return True

    def put_object(self, **kwargs):
        kwargs["payload"] = kwargs["data"].read()
        self.put_calls.append(kwargs)


class TestApiRoutes(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        db_fd, cls.db_path = tempfile.mkstemp(suffix=".db")
        os.close(db_fd)

        from pairpost import create_app
        from pairpost.config import Config
        from pairpost.db import db
        from pairpost.models.post_model import Post
        from pairpost.services import auth_service

        class TestConfig(Config):
            SQLALCHEMY_DATABASE_URI = f"sqlite:///{cls.db_path}"
            JWT_SECRET_KEY = "test-secret"

        cls.app = create_app(TestConfig)
        cls.client = cls.app.test_client()
        cls.db = db
        cls.Post = Post
        cls.auth_service = auth_service

    @classmethod
    def tearDownClass(cls):
        if os.path.exists(cls.db_path):
            os.remove(cls.db_path)

    def setUp(self):
        with self.app.app_context():
            self.db.drop_all()
            self.db.create_all()

    def _register(self, username, password="pass123"):
        with self.app.app_context():
            self.auth_service.register(username, password)

    def _auth_header(self, username, password="pass123"):
        with self.app.app_context():
            token = self.auth_service.login(username, password)["access_token"]
        return {"Authorization": f"Bearer {token}"}

    def _pair(self, first, second):
        first_headers = self._auth_header(first)
        second_headers = self._auth_header(second)

        sent = self.client.post(f"/api/partner/requests/{second}", headers=first_headers)
        self.assertEqual(sent.status_code, 201)
        request_id = self.client.get(
            "/api/partner/requests", headers=second_headers
        ).get_json()[0]["id"]
        accepted = self.client.post(
            f"/api/partner/requests/{request_id}/accept", headers=second_headers
        )
        self.assertEqual(accepted.status_code, 200)

    def _create_post(self, headers, title, caption=None, image=None):
        data = {"title": title}
        if caption is not None:
            data["caption"] = caption
        if image is not None:
            data["image"] = (io.BytesIO(image), "photo.jpg", "image/jpeg")
        return self.client.post(
            "/api/upload",
            data=data,
            headers=headers,
            content_type="multipart/form-data",
        )

    def _post_count(self):
        with self.app.app_context():
            return self.Post.query.count()

    def test_auth_register_and_login_success(self):
        register_response = self.client.post(
            "/api/auth/register",
            json={"username": "api_user", "password": "pass123"},
        )
        self.assertEqual(register_response.status_code, 201)
        self.assertEqual(register_response.get_json()["user"]["username"], "api_user")

        login_response = self.client.post(
            "/api/auth/login",
            json={"username": "api_user", "password": "pass123"},
        )
        self.assertEqual(login_response.status_code, 200)
        body = login_response.get_json()
        self.assertIn("access_token", body)
        self.assertIn("refresh_token", body)

    def test_auth_login_rejects_wrong_password(self):
        self._register("alice")
        response = self.client.post(
            "/api/auth/login",
            json={"username": "alice", "password": "nope"},
        )
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.get_json()["message"], "Invalid credentials")

    def test_auth_refresh_returns_access_token(self):
        self._register("alice")
        with self.app.app_context():
            token = self.auth_service.login("alice", "pass123")["refresh_token"]

        response = self.client.post(
            "/api/auth/refresh",
            headers={"Authorization": f"Bearer {token}"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.get_json()["access_token"])

    def test_create_post_requires_auth(self):
        response = self.client.post("/api/upload", data={"title": "hello"})
        self.assertEqual(response.status_code, 401)
        self.assertIn("message", response.get_json())

    def test_list_posts_requires_auth(self):
        response = self.client.get("/api/posts")
        self.assertEqual(response.status_code, 401)

    def test_create_post_with_image_stores_gateway_reference(self):
        self._register("alice")
        headers = self._auth_header("alice")
        gateway = FakeGateway()

        with patch("pairpost.services.post_service.get_media_gateway", return_value=gateway):
            resp = self._create_post(headers, "Trip", image=b"fake-image-bytes")

        self.assertEqual(resp.status_code, 201)
        body = resp.get_json()
        self.assertIsNotNone(body["id"])
        self.assertEqual(body["title"], "Trip")
        self.assertIsNone(body["caption"])
        self.assertEqual(body["image"], "posts/upload-1.jpeg")
        self.assertEqual(body["user"]["username"], "alice")
        self.assertIsNotNone(body["created_at"])
        self.assertEqual(gateway.uploads, [b"fake-image-bytes"])

    def test_create_post_without_image_never_touches_storage(self):
        self._register("alice")
        headers = self._auth_header("alice")
        factory = MagicMock()

        with patch("pairpost.services.post_service.get_media_gateway", factory):
            resp = self._create_post(headers, "No picture", caption="just words")

        self.assertEqual(resp.status_code, 201)
        body = resp.get_json()
        self.assertIsNone(body["image"])
        self.assertEqual(body["caption"], "just words")
        factory.assert_not_called()

    def test_create_post_accepts_json_body(self):
        self._register("alice")
        headers = self._auth_header("alice")

        resp = self.client.post(
            "/api/upload",
            json={"title": "From JSON", "caption": "hi"},
            headers=headers,
        )

        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.get_json()["title"], "From JSON")

    def test_create_post_rejects_missing_or_empty_title(self):
        self._register("alice")
        headers = self._auth_header("alice")
        factory = MagicMock()

        with patch("pairpost.services.post_service.get_media_gateway", factory):
            resp = self._create_post(headers, "", caption="c", image=b"bytes")
            self.assertEqual(resp.status_code, 400)
            self.assertEqual(resp.get_json()["message"], "Title is required")

            resp = self.client.post(
                "/api/upload",
                json={"caption": "no title"},
                headers=headers,
            )
            self.assertEqual(resp.status_code, 400)

            resp = self.client.post(
                "/api/upload",
                data={"caption": "no title"},
                headers=headers,
                content_type="multipart/form-data",
            )
            self.assertEqual(resp.status_code, 400)

        factory.assert_not_called()
        self.assertEqual(self._post_count(), 0)

    def test_create_post_keeps_title_and_caption_as_sent(self):
        self._register("alice")
        headers = self._auth_header("alice")

        resp = self._create_post(headers, "  Trip ", caption="")
        self.assertEqual(resp.status_code, 201)
        body = resp.get_json()
        self.assertEqual(body["title"], "  Trip ")
        self.assertEqual(body["caption"], "")

        resp = self._create_post(headers, "   ")
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.get_json()["title"], "   ")
        self.assertEqual(self._post_count(), 2)

    def test_create_post_accepts_any_file_content_type(self):
        self._register("alice")
        headers = self._auth_header("alice")
        client = RecordingMinio()

        with patch("pairpost.services.media_gateway.get_minio_client", return_value=client):
            resp = self.client.post(
                "/api/upload",
                data={
                    "title": "T",
                    "image": (io.BytesIO(b"raw-bytes"), "scan.bmp", "application/octet-stream"),
                },
                headers=headers,
                content_type="multipart/form-data",
            )

        self.assertEqual(resp.status_code, 201)
        image = resp.get_json()["image"]
        self.assertTrue(image.startswith("posts/"))
        self.assertTrue(image.endswith(".bmp"))
        self.assertEqual(len(client.put_calls), 1)
        self.assertEqual(client.put_calls[0]["object_name"], image)
        self.assertEqual(client.put_calls[0]["content_type"], "application/octet-stream")
        self.assertEqual(client.put_calls[0]["payload"], b"raw-bytes")

    def test_create_post_reports_storage_failure_as_client_error(self):
        from pairpost.errors import OperationError

        self._register("alice")
        headers = self._auth_header("alice")
        gateway = MagicMock()
        gateway.upload.side_effect = OperationError("Media storage is unavailable")

        with patch("pairpost.services.post_service.get_media_gateway", return_value=gateway):
            resp = self._create_post(headers, "Trip", image=b"bytes")

        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.get_json()["message"], "Media storage is unavailable")
        self.assertEqual(self._post_count(), 0)

    def test_create_post_unknown_failure_returns_generic_message(self):
        self._register("alice")
        headers = self._auth_header("alice")
        gateway = MagicMock()
        gateway.upload.side_effect = RuntimeError("boom")

        with patch("pairpost.services.post_service.get_media_gateway", return_value=gateway):
            resp = self._create_post(headers, "Trip", image=b"bytes")

        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.get_json()["message"], "An unknown error occurred.")

    def test_list_posts_without_partner_fails(self):
        self._register("alice")
        headers = self._auth_header("alice")

        for title in ("one", "two"):
            self.assertEqual(self._create_post(headers, title).status_code, 201)

        resp = self.client.get("/api/posts", headers=headers)
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(
            resp.get_json()["message"],
            "You do not have a partner to view posts",
        )

    def test_list_posts_without_partner_and_without_posts_fails(self):
        self._register("alice")
        resp = self.client.get("/api/posts", headers=self._auth_header("alice"))
        self.assertEqual(resp.status_code, 400)

    def test_list_posts_returns_own_then_partner_posts(self):
        self._register("alice")
        self._register("bob")
        self._register("carol")
        self._pair("alice", "bob")
        alice = self._auth_header("alice")
        bob = self._auth_header("bob")
        carol = self._auth_header("carol")
        gateway = FakeGateway()

        with patch("pairpost.services.post_service.get_media_gateway", return_value=gateway):
            self.assertEqual(self._create_post(bob, "bob trip", image=b"b").status_code, 201)
            self.assertEqual(self._create_post(alice, "alice first").status_code, 201)
            self.assertEqual(self._create_post(carol, "carol private").status_code, 201)
            self.assertEqual(self._create_post(alice, "alice second", image=b"a").status_code, 201)

            resp = self.client.get("/api/posts", headers=alice)

        self.assertEqual(resp.status_code, 200)
        posts = resp.get_json()
        self.assertEqual(
            [post["title"] for post in posts],
            ["alice first", "alice second", "bob trip"],
        )
        self.assertEqual([post["mine"] for post in posts], [True, True, False])

        self.assertIsNone(posts[0]["image"])
        self.assertIsNone(posts[0]["imageUrl"])
        self.assertEqual(posts[1]["image"], "posts/upload-2.jpeg")
        self.assertEqual(
            posts[1]["imageUrl"],
            "https://storage.test/posts/upload-2.jpeg?signature=abc",
        )
        self.assertEqual(posts[2]["image"], "posts/upload-1.jpeg")
        self.assertIsNotNone(posts[2]["imageUrl"])
        self.assertEqual(sorted(gateway.signed), ["posts/upload-1.jpeg", "posts/upload-2.jpeg"])

    def test_list_posts_mine_flag_is_relative_to_caller(self):
        self._register("alice")
        self._register("bob")
        self._pair("alice", "bob")
        alice = self._auth_header("alice")
        bob = self._auth_header("bob")

        self._create_post(alice, "a1")
        self._create_post(alice, "a2")
        self._create_post(bob, "b1")

        resp = self.client.get("/api/posts", headers=bob)

        self.assertEqual(resp.status_code, 200)
        posts = resp.get_json()
        self.assertEqual([post["title"] for post in posts], ["b1", "a1", "a2"])
        self.assertEqual([post["mine"] for post in posts], [True, False, False])
        self.assertTrue(all(post["imageUrl"] is None for post in posts))

    def test_list_posts_fails_when_any_signature_fails(self):
        from pairpost.errors import OperationError

        self._register("alice")
        self._register("bob")
        self._pair("alice", "bob")
        alice = self._auth_header("alice")

        with patch("pairpost.services.post_service.get_media_gateway", return_value=FakeGateway()):
            self._create_post(alice, "with image", image=b"x")

        gateway = MagicMock()
        gateway.signed_url.side_effect = OperationError("Could not sign media URL")
        with patch("pairpost.services.post_service.get_media_gateway", return_value=gateway):
            resp = self.client.get("/api/posts", headers=alice)

        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.get_json()["message"], "Could not sign media URL")

    def test_list_posts_for_deleted_user_is_not_found(self):
        self._register("alice")
        headers = self._auth_header("alice")

        with self.app.app_context():
            from pairpost.models.user_model import User

            self.db.session.delete(User.query.filter_by(username="alice").first())
            self.db.session.commit()

        resp = self.client.get("/api/posts", headers=headers)
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.get_json()["message"], "User not found")


if __name__ == "__main__":
    unittest.main()
