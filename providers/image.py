# FILE: providers/image.py
from typing import Any, Dict, Optional
from urllib.parse import quote

from config import IMAGE_API_BASE_URL
from core.errors import ProviderRejected
from models.requests import ImageGenerationRequest
from providers.base import CapabilityProvider

MAX_PROMPT_LENGTH = 1000


class ImageGenerationProvider(CapabilityProvider):
    """
    Renders images through a prompt-addressed image endpoint.
    The image is produced when the returned URL is first fetched.
    """

    name = "image_generation"

    def __init__(self, base_url: Optional[str] = None):
        self.base_url = (base_url or IMAGE_API_BASE_URL).rstrip("/")

    async def invoke(self, request: ImageGenerationRequest) -> Dict[str, Any]:
        prompt = request.prompt.strip()
        if not prompt:
            raise ProviderRejected("Image prompt is empty")
        if len(prompt) > MAX_PROMPT_LENGTH:
            raise ProviderRejected(f"Image prompt is longer than {MAX_PROMPT_LENGTH} characters")

        url = (
            f"{self.base_url}/prompt/{quote(prompt, safe='')}"
            f"?width={request.width}&height={request.height}&nologo=true"
        )
        return {"imageUrl": url, "prompt": prompt}
