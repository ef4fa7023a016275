"""Error taxonomy for the transform pipeline.

Errors that can reach a client carry their HTTP status and render their own JSON
body through ``to_content``; the FastAPI exception handler in ``main.py`` does the rest.
"""
from typing import Any, Dict, Optional


CAPACITY_MESSAGE = (
    "Patience, gorgeous. A perfect hairstyle is worth a short wait. "
    "We're currently styling at full capacity, so please try again."
)
CAPACITY_SUB_MESSAGE = "if fails again, please try again later"


class HairstylistError(Exception):
    """Base class for errors converted to an HTTP response"""

    status_code = 500

    def __init__(
        self,
        message: str,
        user_sub_message: Optional[str] = None,
        current_credits: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.user_sub_message = user_sub_message
        self.current_credits = current_credits

    def to_content(self) -> Dict[str, Any]:
        content: Dict[str, Any] = {"error": self.message}
        if self.user_sub_message:
            content["userSubMessage"] = self.user_sub_message
        if self.current_credits is not None:
            content["currentCredits"] = self.current_credits
        return content


class AuthError(HairstylistError):
    status_code = 401


class UserMismatchError(HairstylistError):
    status_code = 403


class ValidationError(HairstylistError):
    status_code = 400


class InsufficientCreditsError(HairstylistError):
    status_code = 402


class ProfileNotFoundError(HairstylistError):
    status_code = 404


class ProfileLookupError(HairstylistError):
    status_code = 500


class TransformationFailedError(HairstylistError):
    """Generation failed; credits were not touched"""

    status_code = 500


class CreditWriteError(HairstylistError):
    """Post-success deduction failed. Logged by the orchestrator, never sent to the client."""


class GenerativeContentError(Exception):
    """The model answered, but not with what the stage needs (empty text, no image)"""


class GenerativeCapacityError(Exception):
    """Gemini stayed unavailable after every retry"""

    def __init__(self, message: str = CAPACITY_MESSAGE, user_sub_message: str = CAPACITY_SUB_MESSAGE):
        super().__init__(message)
        self.user_message = message
        self.user_sub_message = user_sub_message
