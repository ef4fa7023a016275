"""Environment configuration"""
import logging
import os
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Load environment variables from .env file
load_dotenv()

# Gemini
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash-image-preview")
DESCRIPTION_TEMPERATURE = float(os.getenv("DESCRIPTION_TEMPERATURE", "0.6"))
SYNTHESIS_TEMPERATURE = float(os.getenv("SYNTHESIS_TEMPERATURE", "1.0"))

# Supabase (service role, server-side only)
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
PROFILES_TABLE = os.getenv("PROFILES_TABLE", "user_profiles")

# Uploads
MAX_IMAGE_SIZE_BYTES = int(os.getenv("MAX_IMAGE_SIZE_BYTES", str(10 * 1024 * 1024)))
DEFAULT_IMAGE_MIME_TYPE = os.getenv("DEFAULT_IMAGE_MIME_TYPE", "image/png")

# Retry / deadline
RETRY_MAX_RETRIES = int(os.getenv("RETRY_MAX_RETRIES", "5"))
RETRY_INITIAL_DELAY = float(os.getenv("RETRY_INITIAL_DELAY", "1.0"))  # seconds
TRANSFORM_TIMEOUT_SECONDS = float(os.getenv("TRANSFORM_TIMEOUT_SECONDS", "300"))

# Credits
CREDIT_COST_PER_TRANSFORMATION = 1

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Used by transform_api_client.py
API_BASE = os.getenv("API_BASE", "http://127.0.0.1:8000")


def warn_missing_credentials(gemini_api_key=None, supabase_url=None, supabase_key=None):
    """Log, without failing, each credential the service cannot run without"""
    missing = []
    if not gemini_api_key:
        logger.warning("GEMINI_API_KEY not configured. Hairstyle generation will fail.")
        missing.append("GEMINI_API_KEY")
    if not supabase_url or not supabase_key:
        logger.warning("SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY not configured. Auth and credits will fail.")
        missing.append("SUPABASE")
    return missing


warn_missing_credentials(GEMINI_API_KEY, SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY)
