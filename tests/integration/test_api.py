import unittest

from fastapi.testclient import TestClient
from google.api_core.exceptions import ServiceUnavailable

from movieshelf.collections.service import COLLECTION_MOVIES, COLLECTIONS
from movieshelf.favorites.service import USER_FAVORITES
from movieshelf.storage.factory import FirestoreStorage
from tests.fake_firestore import FakeFirestore, patch_transactions
from tests.helpers import auth_headers, build_test_app


class ApiTestCase(unittest.TestCase):
    def setUp(self):
        patch_transactions(self)
        self.db = FakeFirestore()
        self.app = build_test_app(FirestoreStorage(self.db))
        self.client = TestClient(self.app)
        self.alice = auth_headers("token-alice")
        self.bob = auth_headers("token-bob")

    def create_collection(self, name="Favourites of 2024", headers=None, **extra):
        response = self.client.post(
            "/api/collections", json={"name": name, **extra}, headers=headers or self.alice
        )
        self.assertEqual(response.status_code, 200, response.text)
        return response.json()["collection"]


class AuthenticationTests(ApiTestCase):
    def test_endpoints_require_a_user(self):
        for method, path in [("get", "/api/collections"),
                             ("post", "/api/collections"),
                             ("get", "/api/collections/abc"),
                             ("delete", "/api/collections/abc"),
                             ("get", "/api/favorites"),
                             ("post", "/api/favorites")]:
            response = self.client.request(method.upper(), path, json={})
            self.assertEqual(response.status_code, 401, f"{method} {path}")
            self.assertEqual(response.json(), {"error": "Unauthorized"})

    def test_unknown_token_is_unauthorized(self):
        response = self.client.get("/api/collections", headers=auth_headers("forged"))
        self.assertEqual(response.status_code, 401)

    def test_session_cookie_is_accepted(self):
        response = self.client.get("/api/favorites", headers={"Cookie": "session=token-alice"})
        self.assertEqual(response.status_code, 200)

    def test_root(self):
        self.assertEqual(self.client.get("/").status_code, 200)


class CollectionsApiTests(ApiTestCase):
    def test_create_returns_camel_case_collection(self):
        collection = self.create_collection(name="  Noir  ", description="Shadows")

        self.assertEqual(collection["name"], "Noir")
        self.assertEqual(collection["description"], "Shadows")
        self.assertFalse(collection["isPublic"])
        self.assertEqual(collection["movies"], [])
        self.assertEqual(collection["movieCount"], 0)
        self.assertIn("createdAt", collection)
        self.assertIn("updatedAt", collection)
        self.assertNotIn("userId", collection)

    def test_blank_name_is_rejected_without_writing(self):
        """Validation failures never reach Firestore"""
        for body in ({"name": "   "}, {"description": "No name"}, {"name": 42}):
            response = self.client.post("/api/collections", json=body, headers=self.alice)
            self.assertEqual(response.status_code, 400)
            self.assertIn("error", response.json())
        self.assertEqual(self.db.docs(COLLECTIONS), {})

    def test_list_collections_is_per_user(self):
        self.create_collection(name="Mine")
        self.create_collection(name="Bob's", headers=self.bob)

        response = self.client.get("/api/collections", headers=self.alice)

        self.assertEqual(response.status_code, 200)
        self.assertEqual([c["name"] for c in response.json()["collections"]], ["Mine"])

    def test_get_collection_with_movies(self):
        collection = self.create_collection()
        self.client.post(f"/api/collections/{collection['id']}/movies", json={"movieId": 550}, headers=self.alice)

        response = self.client.get(f"/api/collections/{collection['id']}", headers=self.alice)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["collection"]["movies"], [550])
        self.assertEqual(response.json()["collection"]["movieCount"], 1)

    def test_missing_collection_is_not_found(self):
        response = self.client.get("/api/collections/nope", headers=self.alice)
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"error": "Collection not found"})

    def test_other_users_collection_is_not_found(self):
        """Someone else's collection looks exactly like a missing one"""
        collection = self.create_collection(name="Private")
        path = f"/api/collections/{collection['id']}"

        self.assertEqual(self.client.get(path, headers=self.bob).status_code, 404)
        self.assertEqual(self.client.put(path, json={"name": "Stolen"}, headers=self.bob).status_code, 404)
        self.assertEqual(self.client.delete(path, headers=self.bob).status_code, 404)
        self.assertEqual(
            self.client.post(f"{path}/movies", json={"movieId": 550}, headers=self.bob).status_code, 404
        )
        self.assertEqual(self.client.get(f"{path}/export", headers=self.bob).status_code, 404)

        self.assertEqual(self.client.get(path, headers=self.alice).json()["collection"]["name"], "Private")
        self.assertEqual(self.db.docs(COLLECTION_MOVIES), {})

    def test_update_collection(self):
        collection = self.create_collection(name="Drama", description="Tears")
        path = f"/api/collections/{collection['id']}"

        response = self.client.put(path, json={"isPublic": True}, headers=self.alice)

        self.assertEqual(response.status_code, 200)
        updated = response.json()["collection"]
        self.assertEqual(updated["name"], "Drama")
        self.assertEqual(updated["description"], "Tears")
        self.assertTrue(updated["isPublic"])

        response = self.client.put(path, json={"name": "  "}, headers=self.alice)
        self.assertEqual(response.status_code, 400)

    def test_update_blank_name_rejected_before_lookup(self):
        """A blank name is a 400 even when the collection does not exist"""
        self.db.fail_with = ServiceUnavailable("Firestore unavailable")

        response = self.client.put("/api/collections/nope", json={"name": "   "}, headers=self.alice)

        self.assertEqual(response.status_code, 400)
        self.assertIn("Collection name is required", response.json()["error"])

    def test_delete_collection(self):
        collection = self.create_collection()
        path = f"/api/collections/{collection['id']}"
        self.client.post(f"{path}/movies", json={"movieId": 550}, headers=self.alice)

        response = self.client.delete(path, headers=self.alice)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"success": True})
        self.assertEqual(self.client.get(path, headers=self.alice).status_code, 404)
        self.assertEqual(self.db.docs(COLLECTION_MOVIES), {})

    def test_add_movie_then_duplicate_conflicts(self):
        collection = self.create_collection()
        path = f"/api/collections/{collection['id']}/movies"

        first = self.client.post(path, json={"movieId": 550}, headers=self.alice)
        second = self.client.post(path, json={"movieId": 550}, headers=self.alice)

        self.assertEqual(first.status_code, 200)
        self.assertEqual(first.json(), {"success": True})
        self.assertEqual(second.status_code, 409)
        self.assertEqual(second.json(), {"error": "Movie already in collection"})
        self.assertEqual(len(self.db.docs(COLLECTION_MOVIES)), 1)

    def test_add_movie_rejects_bad_ids(self):
        collection = self.create_collection()
        path = f"/api/collections/{collection['id']}/movies"

        for body in ({"movieId": "abc"}, {"movieId": "42"}, {"movieId": 0}, {"movieId": 4.5}, {}):
            response = self.client.post(path, json=body, headers=self.alice)
            self.assertEqual(response.status_code, 400, body)
        self.assertEqual(self.db.docs(COLLECTION_MOVIES), {})

    def test_remove_movie(self):
        collection = self.create_collection()
        path = f"/api/collections/{collection['id']}/movies"
        self.client.post(path, json={"movieId": 550}, headers=self.alice)

        response = self.client.delete(path, params={"movieId": 550}, headers=self.alice)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.db.docs(COLLECTION_MOVIES), {})

    def test_remove_movie_requires_movie_id(self):
        collection = self.create_collection()
        path = f"/api/collections/{collection['id']}/movies"

        self.assertEqual(self.client.delete(path, headers=self.alice).status_code, 400)
        self.assertEqual(self.client.delete(path, params={"movieId": "abc"}, headers=self.alice).status_code, 400)

    def test_export_and_import(self):
        collection = self.create_collection(name="Road Trips")
        for movie_id in (9659, 76341):
            self.client.post(f"/api/collections/{collection['id']}/movies",
                             json={"movieId": movie_id}, headers=self.alice)

        exported = self.client.get(f"/api/collections/{collection['id']}/export", headers=self.alice)
        self.assertEqual(exported.status_code, 200)

        response = self.client.post("/api/collections/import",
                                    json={"data": exported.json()["data"]}, headers=self.bob)

        self.assertEqual(response.status_code, 200)
        imported = response.json()["collection"]
        self.assertEqual(imported["name"], "Road Trips (Imported)")
        self.assertEqual(sorted(imported["movies"]), [9659, 76341])
        self.assertEqual(len(self.client.get("/api/collections", headers=self.bob).json()["collections"]), 1)

    def test_import_rejects_garbage(self):
        response = self.client.post("/api/collections/import", json={"data": "%%%"}, headers=self.alice)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.db.docs(COLLECTIONS), {})

    def test_public_collections(self):
        self.create_collection(name="Alice public", isPublic=True)
        self.create_collection(name="Alice private")
        self.create_collection(name="Bob public", headers=self.bob, isPublic=True)

        response = self.client.get("/api/public/collections")

        self.assertEqual(response.status_code, 200)
        names = sorted(c["name"] for c in response.json()["collections"])
        self.assertEqual(names, ["Alice public", "Bob public"])

    def test_store_failure_returns_server_error(self):
        self.db.fail_with = ServiceUnavailable("Firestore unavailable")

        response = self.client.get("/api/collections", headers=self.alice)

        self.assertEqual(response.status_code, 500)
        self.assertIn("Firestore unavailable", response.json()["error"])


class FavoritesApiTests(ApiTestCase):
    def test_add_then_duplicate_conflicts(self):
        first = self.client.post("/api/favorites", json={"movieId": 42}, headers=self.alice)
        second = self.client.post("/api/favorites", json={"movieId": 42}, headers=self.alice)

        self.assertEqual(first.status_code, 200)
        body = first.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["favorite"]["movieId"], 42)
        self.assertEqual(body["favorite"]["userId"], "alice")
        self.assertEqual(second.status_code, 409)
        self.assertEqual(second.json(), {"error": "Movie already in favorites"})
        self.assertEqual(len(self.db.docs(USER_FAVORITES)), 1)

    def test_add_rejects_bad_ids(self):
        for body in ({"movieId": "abc"}, {"movieId": "42"}, {"movieId": -1}, {}):
            response = self.client.post("/api/favorites", json=body, headers=self.alice)
            self.assertEqual(response.status_code, 400, body)
        self.assertEqual(self.db.docs(USER_FAVORITES), {})

    def test_list_and_remove(self):
        self.client.post("/api/favorites", json={"movieId": 42}, headers=self.alice)
        self.client.post("/api/favorites", json={"movieId": 7}, headers=self.bob)

        self.assertEqual(self.client.get("/api/favorites", headers=self.alice).json(), {"favorites": [42]})

        response = self.client.delete("/api/favorites", params={"movieId": 42}, headers=self.alice)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.client.get("/api/favorites", headers=self.alice).json(), {"favorites": []})
        self.assertEqual(self.client.get("/api/favorites", headers=self.bob).json(), {"favorites": [7]})

    def test_remove_requires_movie_id(self):
        response = self.client.delete("/api/favorites", headers=self.alice)
        self.assertEqual(response.status_code, 400)

    def test_favorite_status(self):
        self.client.post("/api/favorites", json={"movieId": 42}, headers=self.alice)

        self.assertEqual(self.client.get("/api/favorites/42", headers=self.alice).json(), {"isFavorite": True})
        self.assertEqual(self.client.get("/api/favorites/42", headers=self.bob).json(), {"isFavorite": False})

    def test_favorite_status_for_anonymous_caller(self):
        response = self.client.get("/api/favorites/42")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"isFavorite": False})

    def test_favorite_status_rejects_non_numeric_id(self):
        self.assertEqual(self.client.get("/api/favorites/abc", headers=self.alice).status_code, 400)


class MoviesApiTests(ApiTestCase):
    def test_demo_data_without_token(self):
        popular = self.client.get("/api/movies/popular")
        self.assertEqual(popular.status_code, 200)
        self.assertEqual(len(popular.json()["results"]), 20)

        details = self.client.get("/api/movies/550")
        self.assertEqual(details.json()["title"], "Demo Movie 550")

        genres = self.client.get("/api/movies/genres")
        self.assertIn({"id": 878, "name": "Science Fiction"}, genres.json()["genres"])

    def test_search_requires_query(self):
        self.assertEqual(self.client.get("/api/movies/search").status_code, 400)


if __name__ == '__main__':
    unittest.main()
