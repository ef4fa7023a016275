from fastapi import FastAPI, Request, Depends, Security, File, Form, UploadFile
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional
import uvicorn
import logging

from config import CREDIT_COST_PER_TRANSFORMATION, LOG_LEVEL, MAX_IMAGE_SIZE_BYTES
from schemas import CreditsResponse, TransformResponse
from services.auth_service import IdentityVerifier, get_identity_verifier
from services.errors import HairstylistError
from services.hairstyle_service import perform_hairstyle_transfer
from services.image_service import check_upload_sizes, read_upload
from services.profile_service import ProfileStore, get_profile_store
from services.transformation_service import Transformer, authenticate, get_credits, transform_for_user

# Setup logging
logging.basicConfig(
    level=LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Keshin Shop Hairstylist API")

# Missing or non-Bearer Authorization headers reach the verifier as None
security = HTTPBearer(auto_error=False)


def get_bearer_token(credentials: Optional[HTTPAuthorizationCredentials] = Security(security)) -> Optional[str]:
    """Extract the raw access token from the Bearer header"""
    return credentials.credentials if credentials else None


def get_transformer() -> Transformer:
    return perform_hairstyle_transfer


@app.post("/api/v1/transform", response_model=TransformResponse)
async def transform_hairstyle(
    source_image: Optional[UploadFile] = File(None, alias="sourceImage"),
    target_image: Optional[UploadFile] = File(None, alias="targetImage"),
    user_id: Optional[str] = Form(None, alias="userId"),
    token: Optional[str] = Depends(get_bearer_token),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
    store: ProfileStore = Depends(get_profile_store),
    transformer: Transformer = Depends(get_transformer),
):
    """Apply the hairstyle from sourceImage onto the person in targetImage, for 1 credit"""
    logger.info(f"TRANSFORM ENDPOINT HIT - User ID: {user_id}")
    try:
        # Uploads are not read until the caller is known
        user_id = await authenticate(verifier, token, user_id)
        check_upload_sizes(source_image, target_image)
        source = await read_upload(source_image)
        target = await read_upload(target_image)
        return await transform_for_user(user_id, source, target, store=store, transformer=transformer)
    except HairstylistError:
        raise
    except Exception as e:
        logger.exception("Unexpected processing error")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to process images. Please try again.", "details": str(e)},
        )


@app.get("/api/v1/transform")
async def transform_info():
    """Describe the transform endpoint"""
    return {
        "message": "Keshin Shop Processing API",
        "endpoints": {
            "POST /api/v1/transform": "Process hair style transformation"
        },
        "usage": {
            "sourceImage": "Image file containing the hairstyle to copy",
            "targetImage": "Image file of the person to apply the hairstyle to",
            "userId": "ID of the signed-in user; must match the Bearer token",
        },
        "limits": {
            "maxImageSizeBytes": MAX_IMAGE_SIZE_BYTES,
            "creditsPerTransformation": CREDIT_COST_PER_TRANSFORMATION,
        },
    }


@app.get("/api/v1/credits", response_model=CreditsResponse)
async def current_credits(
    token: Optional[str] = Depends(get_bearer_token),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
    store: ProfileStore = Depends(get_profile_store),
):
    """Credit balance of the signed-in user"""
    return await get_credits(token, verifier, store)


@app.get("/health")
async def health():
    return {"status": "healthy"}


@app.exception_handler(HairstylistError)
async def hairstylist_exception_handler(request: Request, exc: HairstylistError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_content())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={"detail": exc.errors(), "body": str(exc.body)}
    )


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
