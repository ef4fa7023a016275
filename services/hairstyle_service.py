"""Two-stage hairstyle transfer: describe the inspiration style, then synthesize it onto the user"""
import asyncio
import logging
from functools import lru_cache
from typing import Any, Awaitable, Callable, Optional, Tuple

from google import genai
from google.genai import types

from config import GEMINI_API_KEY, GEMINI_MODEL, SYNTHESIS_TEMPERATURE
from schemas import HairstyleTransferResult
from services.errors import GenerativeCapacityError, GenerativeContentError
from services.hairstyle_description_service import generate_hairstyle_description
from services.image_service import to_base64
from services.retry_service import is_transient_error, retry_with_backoff

logger = logging.getLogger(__name__)

MISSING_IMAGE_ERROR = "Failed to generate the new hairstyle image."
INTERNAL_ERROR = "An internal server error occurred."

SYNTHESIS_PROMPT_TEMPLATE = """Transform the hairstyle of the person in the provided image. The new hairstyle must precisely match the characteristics detailed in the "Hairstyle Description" provided below.

**Strict Application Guidelines:**

1.  **Full Hairstyle Transfer:** Apply the described hairstyle, including its exact shape, length, volume, and crucially, its specific texture and curl/wave pattern, onto the person's head.
2.  **Preserve Facial Identity:** Maintain the original facial features, skin tone, head shape, and all other non-hair-related aspects of the person in the image. Do not alter their identity.
3.  **Seamless Integration:** The new hairstyle must be seamlessly integrated. Ensure a natural-looking hairline, realistic hair flow, and appropriate layering that makes the hairstyle appear genuinely part of the person.
4.  **Match Environmental Lighting:** The lighting, shadows, and highlights on the new hairstyle must precisely match the existing ambient and directional lighting conditions present in the original image. The hair should look naturally lit within the scene.
5.  **Maintain Original Hair Color:** While adopting the new shape and texture, use the *original hair color* of the person from the input image. Do not introduce a different hair color from the description or any external source.
6.  **Realistic Fit:** The hairstyle should fit the person's head proportionally and naturally, as if they had just received that specific haircut and styling.

Hairstyle Description:
{description}"""


@lru_cache(maxsize=1)
def get_gemini_client() -> genai.Client:
    if not GEMINI_API_KEY:
        raise RuntimeError("GEMINI_API_KEY not configured")
    return genai.Client(api_key=GEMINI_API_KEY)


def build_synthesis_prompt(description: str) -> str:
    return SYNTHESIS_PROMPT_TEMPLATE.format(description=description)


def extract_inline_image(response: Any) -> Optional[Tuple[bytes, str]]:
    """Return (bytes, mime) of the first inline image part, or None"""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return None
    content = getattr(candidates[0], "content", None)
    for part in getattr(content, "parts", None) or []:
        inline_data = getattr(part, "inline_data", None)
        if inline_data is not None and inline_data.data:
            return inline_data.data, inline_data.mime_type or "image/png"
    return None


async def synthesize_hairstyle(
    client: Any,
    person_bytes: bytes,
    person_mime_type: str,
    description: str,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> Tuple[bytes, str]:
    """Stage 2: render the described hairstyle onto the person photo"""
    logger.info("Step 2: Applying new hairstyle to the person's image...")
    person_part = types.Part.from_bytes(data=person_bytes, mime_type=person_mime_type)
    prompt = build_synthesis_prompt(description)

    async def synthesize():
        return await client.aio.models.generate_content(
            model=GEMINI_MODEL,
            contents=[person_part, prompt],
            config=types.GenerateContentConfig(
                temperature=SYNTHESIS_TEMPERATURE,
                response_modalities=["TEXT", "IMAGE"],
            ),
        )

    response = await retry_with_backoff(
        synthesize,
        should_retry=is_transient_error,
        sleep=sleep,
        label="Hairstyle synthesis",
    )

    image = extract_inline_image(response)
    if image is None:
        logger.error("The API response did not contain an image.")
        raise GenerativeContentError(MISSING_IMAGE_ERROR)
    return image


async def perform_hairstyle_transfer(
    style_image: bytes,
    style_mime_type: str,
    person_image: bytes,
    person_mime_type: str,
    client: Any = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> HairstyleTransferResult:
    """Run both stages and fold every failure into a HairstyleTransferResult"""
    try:
        client = client or get_gemini_client()
        description = await generate_hairstyle_description(client, style_image, style_mime_type, sleep=sleep)
        image_bytes, mime_type = await synthesize_hairstyle(
            client, person_image, person_mime_type, description, sleep=sleep
        )
        logger.info(f"Successfully generated the final image ({len(image_bytes)} bytes, {mime_type})")
        return HairstyleTransferResult.succeeded(to_base64(image_bytes), mime_type)
    except GenerativeCapacityError as e:
        logger.error("Gemini unavailable after all retries")
        return HairstyleTransferResult.failed(e.user_message, e.user_sub_message)
    except GenerativeContentError as e:
        return HairstyleTransferResult.failed(str(e))
    except Exception:
        logger.exception("An unexpected error occurred during the hairstyle transfer process")
        return HairstyleTransferResult.failed(INTERNAL_ERROR)
