"""
Gemini API utilities for the profile picture rotator.

Centralized module for the remote image generation provider. The only call
the rotator needs is "take this base photo and this prompt, give me one image".
"""

import asyncio
import logging
from io import BytesIO
from typing import Optional

from google import genai
from google.genai import errors, types
from PIL import Image

from pfp_rotator.exceptions import ConfigurationError, UpstreamApiError

logger = logging.getLogger(__name__)

# Default image-capable model
DEFAULT_IMAGE_MODEL = "gemini-2.5-flash-image"


class GeminiAPI:
    """Wrapper for Gemini image generation."""

    def __init__(self, api_key: Optional[str], model_name: str = DEFAULT_IMAGE_MODEL):
        """
        Initialize Gemini API client.

        Args:
            api_key: Provider API key (AI_API_KEY)
            model_name: Name of the image-capable Gemini model

        Raises:
            ConfigurationError: If no API key is available
        """
        if not api_key:
            raise ConfigurationError(
                "AI_API_KEY not found (set LOCAL_VARIATIONS=1 for local variations)"
            )
        self.model_name = model_name
        self.client = genai.Client(api_key=api_key)

    def generate_variation_sync(self, base_image: bytes, prompt: str) -> bytes:
        """
        Blocking call: generate one variation of ``base_image`` guided by ``prompt``.

        Args:
            base_image: Encoded base photo
            prompt: Variation prompt

        Returns:
            Encoded image bytes of the first image in the response

        Raises:
            UpstreamApiError: Provider error or response without image data
        """
        with Image.open(BytesIO(base_image)) as reference:
            reference.load()
            contents = [prompt, reference.copy()]

        try:
            response = self.client.models.generate_content(
                model=self.model_name,
                contents=contents,
                config=types.GenerateContentConfig(response_modalities=["IMAGE"])
            )
        except errors.APIError as e:
            raise UpstreamApiError(e.code, e.message or str(e)) from e

        for candidate in response.candidates or []:
            if candidate.content is None:
                continue
            for part in candidate.content.parts or []:
                if part.inline_data is not None and part.inline_data.data:
                    return part.inline_data.data

        raise UpstreamApiError(None, "No image data received from API")

    async def generate_variation(self, base_image: bytes, prompt: str) -> bytes:
        """
        Async wrapper around generate_variation_sync using asyncio.to_thread.

        The google.genai client is synchronous; running it in a worker thread
        keeps the event loop (and the rotation timer) responsive.
        """
        logger.debug(f"Requesting variation from {self.model_name}: '{prompt[:50]}'")
        return await asyncio.to_thread(self.generate_variation_sync, base_image, prompt)
