from functools import lru_cache

from pydantic_ai.models.google import GoogleModel
from pydantic_ai.providers.google import GoogleProvider

from config import GEMINI_MODEL_NAME, get_env_var


@lru_cache(maxsize=1)
def get_model() -> GoogleModel:
    """
    Provider & Model setup, done on first use so the API can start
    (and tests can run) without GOOGLE_API_KEY.
    """
    provider = GoogleProvider(api_key=get_env_var("GOOGLE_API_KEY"))
    return GoogleModel(GEMINI_MODEL_NAME, provider=provider)
