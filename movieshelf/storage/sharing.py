import base64
import binascii
import json
from typing import Dict

from ..collections.models import CollectionWithMovies
from ..core.errors import ValidationError


def encode_collection(collection: CollectionWithMovies) -> str:
    """Shareable payload: base64 of ``{name, description, movies, createdAt}``."""
    export_data = {
        "name": collection.name,
        "description": collection.description,
        "movies": list(collection.movies),
        "createdAt": collection.created_at.isoformat()
    }
    return base64.b64encode(json.dumps(export_data).encode("utf-8")).decode("ascii")


def decode_collection(encoded: str) -> Dict:
    try:
        data = json.loads(base64.b64decode(encoded, validate=True).decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError):
        raise ValidationError("Invalid collection export data")

    if not isinstance(data, dict) or not isinstance(data.get("name"), str) or not data["name"].strip():
        raise ValidationError("Invalid collection export data")

    movies = data.get("movies") or []
    if not isinstance(movies, list) or not all(
        isinstance(m, int) and not isinstance(m, bool) and m > 0 for m in movies
    ):
        raise ValidationError("Invalid collection export data")

    description = data.get("description")
    return {
        "name": data["name"].strip(),
        "description": description if isinstance(description, str) else None,
        "movies": movies,
        "createdAt": data.get("createdAt")
    }
