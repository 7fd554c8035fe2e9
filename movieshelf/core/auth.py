import logging
from typing import Optional

import firebase_admin
from fastapi import Request
from firebase_admin import auth

from .errors import AuthError

logger = logging.getLogger(__name__)

SESSION_COOKIE_NAME = "session"


class FirebaseAuthVerifier:
    """Resolves the caller's uid from a Firebase ID token or session cookie."""

    def __init__(self, firebase_app: Optional[firebase_admin.App] = None):
        self.firebase_app = firebase_app

    def verify_id_token(self, token: str) -> str:
        decoded = auth.verify_id_token(token, app=self.firebase_app)
        return decoded["uid"]

    def verify_session_cookie(self, cookie: str) -> str:
        decoded = auth.verify_session_cookie(cookie, app=self.firebase_app)
        return decoded["uid"]

    def resolve(self, request: Request) -> Optional[str]:
        header = request.headers.get("Authorization", "")
        scheme, _, token = header.partition(" ")
        try:
            if scheme.lower() == "bearer" and token:
                return self.verify_id_token(token.strip())

            cookie = request.cookies.get(SESSION_COOKIE_NAME)
            if cookie:
                return self.verify_session_cookie(cookie)
        except (auth.InvalidIdTokenError, auth.InvalidSessionCookieError,
                auth.UserDisabledError, auth.CertificateFetchError, ValueError) as e:
            logger.info(f"Rejected credentials: {str(e)}")
        return None


class LocalIdentityVerifier:
    """Every request acts as one fixed local user; used with local storage."""

    def __init__(self, user_id: str):
        self.user_id = user_id

    def resolve(self, request: Request) -> Optional[str]:
        return self.user_id


async def get_optional_user_id(request: Request) -> Optional[str]:
    verifier: FirebaseAuthVerifier = request.app.state.auth_verifier
    return verifier.resolve(request)


async def get_current_user_id(request: Request) -> str:
    user_id = await get_optional_user_id(request)
    if not user_id:
        raise AuthError()
    return user_id
