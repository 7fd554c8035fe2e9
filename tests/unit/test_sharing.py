import base64
import json
import unittest
from datetime import datetime, timezone

from movieshelf.collections.models import CollectionWithMovies
from movieshelf.core.errors import ValidationError
from movieshelf.storage.sharing import decode_collection, encode_collection


def encode(payload):
    return base64.b64encode(json.dumps(payload).encode()).decode()


class SharingTests(unittest.TestCase):
    def test_export_format(self):
        """Exports are base64 JSON with name, description, movies and createdAt"""
        created_at = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        collection = CollectionWithMovies(
            id="c1",
            name="Anime",
            description="Ghibli and friends",
            created_at=created_at,
            updated_at=created_at,
            movies=[129, 4935]
        )

        payload = json.loads(base64.b64decode(encode_collection(collection)))

        self.assertEqual(payload, {
            "name": "Anime",
            "description": "Ghibli and friends",
            "movies": [129, 4935],
            "createdAt": "2024-05-01T12:00:00+00:00"
        })

    def test_decode_valid_payload(self):
        data = decode_collection(encode({"name": "Anime", "movies": [129], "createdAt": "2024-05-01"}))
        self.assertEqual(data["name"], "Anime")
        self.assertIsNone(data["description"])
        self.assertEqual(data["movies"], [129])

    def test_decode_rejects_garbage(self):
        for encoded in ("not base64!!", base64.b64encode(b"not json").decode(), encode([1, 2])):
            with self.assertRaises(ValidationError):
                decode_collection(encoded)

    def test_decode_rejects_bad_movies_and_names(self):
        for payload in ({"name": "", "movies": []},
                        {"name": "X", "movies": ["1"]},
                        {"name": "X", "movies": [0]},
                        {"movies": [1]}):
            with self.assertRaises(ValidationError):
                decode_collection(encode(payload))


if __name__ == '__main__':
    unittest.main()
