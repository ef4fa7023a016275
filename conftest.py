"""Shared fakes for the identity backend, the profile store, the transformer and Gemini"""
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from main import app, get_transformer
from schemas import HairstyleTransferResult, UserProfile
from services.auth_service import get_identity_verifier
from services.errors import AuthError, CreditWriteError, ProfileLookupError, ProfileNotFoundError
from services.profile_service import get_profile_store

USER_ID = "user-1"
TOKEN = "token-user-1"
GENERATED_IMAGE_BASE64 = "aGFpcnN0eWxl"


class FakeVerifier:
    def __init__(self, tokens=None):
        self.tokens = tokens if tokens is not None else {TOKEN: USER_ID}

    def verify_token(self, token):
        if not token:
            raise AuthError("Authentication token required")
        if token not in self.tokens:
            raise AuthError("Invalid authentication token")
        return self.tokens[token]


class FakeProfileStore:
    def __init__(self, credits=None, fail_reads=False, fail_writes=False):
        self.credits = dict(credits or {})
        self.fail_reads = fail_reads
        self.fail_writes = fail_writes
        self.reads = []
        self.writes = []

    def get_profile(self, user_id):
        self.reads.append(user_id)
        if self.fail_reads:
            raise ProfileLookupError("Failed to retrieve user profile. Please try again.")
        if user_id not in self.credits:
            raise ProfileNotFoundError("User profile not found")
        return UserProfile(id=user_id, credits=self.credits[user_id])

    def set_credits(self, user_id, credits):
        self.writes.append((user_id, credits))
        if self.fail_writes:
            raise CreditWriteError("Credit update failed: connection reset")
        self.credits[user_id] = credits
        return UserProfile(id=user_id, credits=credits)


class FakeTransformer:
    def __init__(self, result=None):
        self.result = result or HairstyleTransferResult.succeeded(GENERATED_IMAGE_BASE64, "image/png")
        self.calls = []

    async def __call__(self, style_image, style_mime_type, person_image, person_mime_type):
        self.calls.append((style_image, style_mime_type, person_image, person_mime_type))
        return self.result


class FakeModels:
    """Stands in for ``client.aio.models``; each call pops the next scripted outcome"""

    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    async def generate_content(self, model, contents, config=None):
        self.calls.append(SimpleNamespace(model=model, contents=contents, config=config))
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class FakeGeminiClient:
    def __init__(self, outcomes):
        self.models = FakeModels(outcomes)
        self.aio = SimpleNamespace(models=self.models)


def text_response(text):
    return SimpleNamespace(text=text, candidates=[])


def image_response(data=b"generated-image", mime_type="image/png"):
    part = SimpleNamespace(text=None, inline_data=SimpleNamespace(data=data, mime_type=mime_type))
    return SimpleNamespace(text=None, candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))])


def no_image_response():
    part = SimpleNamespace(text="I cannot edit this photo.", inline_data=None)
    return SimpleNamespace(text=part.text, candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))])


async def no_sleep(delay):
    return None


@pytest.fixture
def verifier():
    return FakeVerifier()


@pytest.fixture
def store():
    return FakeProfileStore({USER_ID: 3})


@pytest.fixture
def transformer():
    return FakeTransformer()


@pytest.fixture
def client(verifier, store, transformer):
    app.dependency_overrides[get_identity_verifier] = lambda: verifier
    app.dependency_overrides[get_profile_store] = lambda: store
    app.dependency_overrides[get_transformer] = lambda: transformer
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
