"""Service for describing the hairstyle in an inspiration photo using Gemini"""
import asyncio
import logging
from typing import Any, Awaitable, Callable

from google.genai import types

from config import DESCRIPTION_TEMPERATURE, GEMINI_MODEL
from services.errors import GenerativeContentError
from services.retry_service import is_transient_error, retry_with_backoff

logger = logging.getLogger(__name__)

EMPTY_DESCRIPTION_ERROR = "Could not generate hairstyle description from the provided style image."

DESCRIPTION_PROMPT = """Write a prompt, don't generate any image.
Your job is to help AI to copy the hairstyle/haircut with the help of prompt.
Analyze the hairstyle in the provided image. Generate a highly detailed, descriptive text prompt suitable for an advanced image generation AI. This prompt should meticulously capture all key attributes of the hairstyle, including:

1.  **Overall Shape and Silhouette:** Describe the general form and outline of the hair on the head (e.g., rounded, tapered, voluminous, flat on top, swept back, side part, no part).
2.  **Length and Distribution:** Specify hair length at the top, sides, and back. Note how the length transitions.
3.  **Texture and Curl Pattern:** Detail the hair's natural texture (e.g., straight, wavy, curly, coily, frizzy) and, if applicable, the specific type and tightness of curls or waves. Mention its natural body or lack thereof.
4.  **Volume and Lift:** Indicate where the hair has volume (e.g., at the crown, all over, minimal) and how it achieves that lift.
5.  **Styling Elements:** Describe any specific styling (e.g., messy, sleek, combed, finger-combed, swept, tousled, structured, gelled).
6.  **Hairline and Edges:** Describe how the hair meets the forehead, temples, and neck (e.g., faded, sharp, natural, messy fringe).
7.  **Key Defining Features:** Highlight any unique or prominent characteristics that define this particular haircut or style.

The description should be purely observational and objective, avoiding subjective terms where possible. It must be specific enough that an AI, using *only* this description, could accurately reproduce the same hairstyle on a different person, ensuring the cut and style are applied in the same fashion and proportions relative to a human head.

Important: Do not generate an image. Provide only the detailed textual description, formatted as a direct prompt for an image generation system."""


async def generate_hairstyle_description(
    client: Any,
    image_bytes: bytes,
    mime_type: str,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> str:
    """Stage 1: turn the inspiration photo into a textual hairstyle description"""
    logger.info("Step 1: Generating hairstyle description from style image...")
    image_part = types.Part.from_bytes(data=image_bytes, mime_type=mime_type)

    async def describe():
        return await client.aio.models.generate_content(
            model=GEMINI_MODEL,
            contents=[image_part, DESCRIPTION_PROMPT],
            config=types.GenerateContentConfig(temperature=DESCRIPTION_TEMPERATURE),
        )

    response = await retry_with_backoff(
        describe,
        should_retry=is_transient_error,
        sleep=sleep,
        label="Hairstyle description",
    )

    description = (getattr(response, "text", None) or "").strip()
    if not description:
        logger.error("Failed to generate a valid hairstyle description.")
        raise GenerativeContentError(EMPTY_DESCRIPTION_ERROR)

    logger.info(f"Generated hairstyle description ({len(description)} chars)")
    logger.debug(f"Hairstyle description: {description}")
    return description
