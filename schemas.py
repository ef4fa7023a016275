"""Pydantic models for profiles, uploads, generation results and responses"""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Literal, Optional


class UserProfile(BaseModel):
    """Row of the profiles table. Only ``credits`` is ever written by this service."""
    model_config = ConfigDict(extra="ignore")

    id: str
    credits: int = 0
    email: Optional[str] = None
    name: Optional[str] = None
    gender: Optional[str] = None
    referral_code: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @field_validator("credits", mode="before")
    @classmethod
    def null_credits_are_zero(cls, value):
        return 0 if value is None else value


class UploadedImage(BaseModel):
    data: bytes
    mime_type: str
    filename: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.data)


class HairstyleTransferResult(BaseModel):
    """Outcome of the two-stage transfer: an image on success, curated text on failure"""
    success: bool
    image_base64: Optional[str] = None
    mime_type: Optional[str] = None
    error: Optional[str] = None
    user_sub_message: Optional[str] = None

    @classmethod
    def succeeded(cls, image_base64: str, mime_type: str) -> "HairstyleTransferResult":
        return cls(success=True, image_base64=image_base64, mime_type=mime_type)

    @classmethod
    def failed(cls, error: str, user_sub_message: Optional[str] = None) -> "HairstyleTransferResult":
        return cls(success=False, error=error, user_sub_message=user_sub_message)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TransformResponse(CamelModel):
    success: Literal[True] = True
    processed_image: str = Field(..., description="data:<mime>;base64,<data>")
    message: str = "Hair style transformation completed successfully"
    credits_deducted: bool
    current_credits: int
    new_credits: int


class CreditsResponse(CamelModel):
    success: Literal[True] = True
    user_id: str
    credits: int
