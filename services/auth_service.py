"""Bearer token verification against Supabase Auth"""
import logging
from typing import Optional

from supabase import Client

from services.errors import AuthError
from services.profile_service import get_supabase_client

logger = logging.getLogger(__name__)


class IdentityVerifier:
    """Resolves an access token to the id of the user it was issued to"""

    def __init__(self, client: Client):
        self.client = client

    def verify_token(self, token: Optional[str]) -> str:
        if not token:
            raise AuthError("Authentication token required")
        try:
            user_response = self.client.auth.get_user(token)
        except Exception as e:
            # Any failure to resolve the token is treated as an invalid token
            logger.warning(f"Token verification failed: {e.__class__.__name__}")
            raise AuthError("Invalid authentication token") from e

        user = getattr(user_response, "user", None)
        if not user or not user.id:
            logger.warning("Token verification returned no user")
            raise AuthError("Invalid authentication token")
        return str(user.id)


def get_identity_verifier() -> IdentityVerifier:
    return IdentityVerifier(get_supabase_client())
