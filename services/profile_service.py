"""Profile store: credit balance reads and writes against the Supabase profiles table"""
import logging
from datetime import datetime, timezone
from functools import lru_cache

from supabase import Client, create_client

from config import PROFILES_TABLE, SUPABASE_SERVICE_ROLE_KEY, SUPABASE_URL
from schemas import UserProfile
from services.errors import CreditWriteError, HairstylistError, ProfileLookupError, ProfileNotFoundError

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_supabase_client() -> Client:
    """Service-role client; bypasses row level security, server-side only"""
    if not SUPABASE_URL or not SUPABASE_SERVICE_ROLE_KEY:
        logger.error("Missing Supabase admin environment variables.")
        raise HairstylistError("Server misconfiguration")
    return create_client(SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY)


class ProfileStore:
    """Reads profiles and overwrites their credit balance.

    ``set_credits`` is a plain last-writer-wins update, not a compare-and-swap:
    two requests that read the same balance both write the same decremented value.
    """

    def __init__(self, client: Client, table: str = PROFILES_TABLE):
        self.client = client
        self.table = table

    def get_profile(self, user_id: str) -> UserProfile:
        try:
            response = self.client.table(self.table).select("*").eq("id", user_id).maybe_single().execute()
        except Exception as e:
            logger.error(f"Failed to get user profile for {user_id}: {e}")
            raise ProfileLookupError("Failed to retrieve user profile. Please try again.") from e

        # maybe_single() returns no response at all when the row is missing
        data = getattr(response, "data", None) if response is not None else None
        if isinstance(data, list):
            data = data[0] if data else None
        if not data:
            logger.error(f"User profile not found for user: {user_id}")
            raise ProfileNotFoundError("User profile not found")
        return UserProfile.model_validate(data)

    def set_credits(self, user_id: str, credits: int) -> UserProfile:
        try:
            response = (
                self.client.table(self.table)
                .update({"credits": credits, "updated_at": datetime.now(timezone.utc).isoformat()})
                .eq("id", user_id)
                .execute()
            )
        except Exception as e:
            raise CreditWriteError(f"Credit update failed: {e}") from e

        rows = response.data or []
        if not rows:
            raise CreditWriteError(f"Credit update matched no profile for user {user_id}")
        return UserProfile.model_validate(rows[0])


def get_profile_store() -> ProfileStore:
    return ProfileStore(get_supabase_client())
