"""Credit-gated hairstyle transformation: auth, validation, credit check, generation, deduction"""
import asyncio
import logging
from typing import Awaitable, Callable, Optional

from fastapi.concurrency import run_in_threadpool

from config import CREDIT_COST_PER_TRANSFORMATION, TRANSFORM_TIMEOUT_SECONDS
from schemas import CreditsResponse, HairstyleTransferResult, TransformResponse, UploadedImage
from services.auth_service import IdentityVerifier
from services.errors import (
    InsufficientCreditsError,
    TransformationFailedError,
    UserMismatchError,
)
from services.hairstyle_service import MISSING_IMAGE_ERROR, perform_hairstyle_transfer
from services.image_service import build_data_url, validate_images
from services.profile_service import ProfileStore

logger = logging.getLogger(__name__)

Transformer = Callable[[bytes, str, bytes, str], Awaitable[HairstyleTransferResult]]

INSUFFICIENT_CREDITS_SUB_MESSAGE = "You need at least 1 credit to generate a hairstyle."
TIMEOUT_ERROR = "Hairstyle generation took too long. Please try again."


def next_balance(current_credits: int, cost: int = CREDIT_COST_PER_TRANSFORMATION) -> int:
    """Balance after one charge; never negative"""
    return max(0, current_credits - cost)


async def authenticate(verifier: IdentityVerifier, token: Optional[str], user_id: Optional[str]) -> str:
    token_user_id = await run_in_threadpool(verifier.verify_token, token)
    if not user_id or token_user_id != user_id:
        logger.warning(f"User mismatch: token belongs to {token_user_id}, request claims {user_id}")
        raise UserMismatchError("User mismatch detected")
    return token_user_id


async def run_transformer(
    transformer: Transformer,
    source: UploadedImage,
    target: UploadedImage,
    timeout: Optional[float],
) -> HairstyleTransferResult:
    """Run both generative stages under one deadline; expiry counts as a failed generation"""
    try:
        return await asyncio.wait_for(
            transformer(source.data, source.mime_type, target.data, target.mime_type),
            timeout=timeout if timeout and timeout > 0 else None,
        )
    except asyncio.TimeoutError:
        logger.error(f"Hairstyle transformation exceeded the {timeout}s deadline")
        return HairstyleTransferResult.failed(TIMEOUT_ERROR)


async def process_transformation(
    token: Optional[str],
    user_id: Optional[str],
    source: Optional[UploadedImage],
    target: Optional[UploadedImage],
    verifier: IdentityVerifier,
    store: ProfileStore,
    transformer: Transformer = perform_hairstyle_transfer,
    timeout: Optional[float] = TRANSFORM_TIMEOUT_SECONDS,
) -> TransformResponse:
    """Handle one transform request end to end.

    Credits are read before generation and written after it succeeds. The write is
    an absolute overwrite of the balance observed before generation, so concurrent
    requests from one user are not serialized. A failed generation never touches
    credits; a failed deduction never withholds a generated image.
    """
    user_id = await authenticate(verifier, token, user_id)
    return await transform_for_user(user_id, source, target, store, transformer, timeout)


async def transform_for_user(
    user_id: str,
    source: Optional[UploadedImage],
    target: Optional[UploadedImage],
    store: ProfileStore,
    transformer: Transformer = perform_hairstyle_transfer,
    timeout: Optional[float] = TRANSFORM_TIMEOUT_SECONDS,
) -> TransformResponse:
    """Validation, credit gate, generation and deduction for an already authenticated user"""
    validate_images(source, target)

    logger.info(f"Checking credits for user {user_id}...")
    profile = await run_in_threadpool(store.get_profile, user_id)
    current_credits = profile.credits
    logger.info(f"User {user_id} has {current_credits} credits")

    if current_credits < CREDIT_COST_PER_TRANSFORMATION:
        logger.info(f"Insufficient credits for user {user_id}")
        raise InsufficientCreditsError(
            "Insufficient credits",
            user_sub_message=INSUFFICIENT_CREDITS_SUB_MESSAGE,
            current_credits=0,
        )

    logger.info(f"Starting hairstyle transformation for user {user_id}")
    result = await run_transformer(transformer, source, target, timeout)
    if not result.success:
        logger.error(f"Hairstyle transformation failed for user {user_id}: {result.error}")
        raise TransformationFailedError(
            result.error or MISSING_IMAGE_ERROR,
            user_sub_message=result.user_sub_message,
            current_credits=current_credits,
        )

    new_credits = next_balance(current_credits)
    try:
        updated = await run_in_threadpool(store.set_credits, user_id, new_credits)
        credits_deducted = True
        balance = updated.credits
        logger.info(f"Credit deducted for user {user_id}. New balance: {balance}")
    except Exception as e:
        credits_deducted = False
        balance = current_credits
        logger.warning(f"Credit deduction failed for user {user_id} but image was generated: {e}")

    return TransformResponse(
        processed_image=build_data_url(result.image_base64, result.mime_type),
        credits_deducted=credits_deducted,
        current_credits=balance,
        new_credits=balance,
    )


async def get_credits(token: Optional[str], verifier: IdentityVerifier, store: ProfileStore) -> CreditsResponse:
    user_id = await run_in_threadpool(verifier.verify_token, token)
    profile = await run_in_threadpool(store.get_profile, user_id)
    return CreditsResponse(user_id=user_id, credits=max(0, profile.credits))
