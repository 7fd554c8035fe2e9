from movieshelf.core.auth import FirebaseAuthVerifier
from movieshelf.core.config import Settings
from movieshelf.main import create_app
from movieshelf.movies.service import TMDBClient

TOKENS = {
    "token-alice": "alice",
    "token-bob": "bob",
}


class StaticTokenVerifier(FirebaseAuthVerifier):
    """Accepts a fixed set of tokens instead of calling Firebase Auth."""

    def __init__(self, tokens=None):
        super().__init__(None)
        self.tokens = tokens or TOKENS

    def verify_id_token(self, token):
        if token not in self.tokens:
            raise ValueError("Unknown token")
        return self.tokens[token]

    def verify_session_cookie(self, cookie):
        return self.verify_id_token(cookie)


def make_settings(**overrides):
    values = {"LOG_FILE": None, "TMDB_TOKEN": None}
    values.update(overrides)
    return Settings(**values)


def build_test_app(storage, settings=None):
    settings = settings or make_settings()
    app = create_app(settings)
    app.state.storage = storage
    app.state.auth_verifier = StaticTokenVerifier()
    app.state.tmdb = TMDBClient(settings)
    return app


def auth_headers(token="token-alice"):
    return {"Authorization": f"Bearer {token}"}
