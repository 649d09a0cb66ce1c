import os
from dotenv import load_dotenv

# Load environment variables from .env
load_dotenv()

def get_env_var(name: str) -> str:
    """Get environment variable or raise a clear error if missing."""
    value = os.getenv(name)
    if not value:
        raise RuntimeError(
            f"❌ Missing required environment variable: {name}\n"
            f"👉 Did you copy .env.example to .env and fill in your keys?"
        )
    return value

# Required only when an agent is actually built (see agents/models.py)
GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY")
GEMINI_MODEL_NAME = os.getenv("GEMINI_MODEL_NAME", "gemini-1.5-flash")

# Optional vars (with defaults)
DEBUG = os.getenv("DEBUG", "false").lower() == "true"
PORT = int(os.getenv("PORT", "8000"))

# Empty means the in-memory conversation store is used
DATABASE_URL = os.getenv("DATABASE_URL")

PROVIDER_TIMEOUT_SECONDS = float(os.getenv("PROVIDER_TIMEOUT_SECONDS", "30"))
CLASSIFIER_TIMEOUT_SECONDS = float(os.getenv("CLASSIFIER_TIMEOUT_SECONDS", "30"))
CLASSIFIER_HISTORY_LIMIT = int(os.getenv("CLASSIFIER_HISTORY_LIMIT", "10"))
MAX_SUGGESTIONS = int(os.getenv("MAX_SUGGESTIONS", "3"))
MOCK_PROVIDER_LATENCY = float(os.getenv("MOCK_PROVIDER_LATENCY", "1.0"))

# FasterBook endpoints are only used when this is set
FASTERBOOK_API_URL = os.getenv("FASTERBOOK_API_URL")
IMAGE_API_BASE_URL = os.getenv("IMAGE_API_BASE_URL", "https://image.pollinations.ai")
