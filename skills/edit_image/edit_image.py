"""
Image Editing Skill - "magic spells" on a child's photo with Nano Banana.

The uploaded photo goes in as an inline part next to the spell prompt.
The first image in the reply comes back as a data URI.
"""

import asyncio
import logging
from typing import Optional

from google import genai
from google.genai import types

from config import IMAGE_MODEL, get_gemini_client
from models.media import PlayableResource
from agent.prompts import get_spell
from skills.media_codec.media_codec import decode, encode_base64

logger = logging.getLogger(__name__)


class ImageEditor:
    """
    Edit photos using Gemini 2.5 Flash Image.

    Failures are not swallowed: the caller shows "the magic fizzled out".
    """

    def __init__(self, client: genai.Client = None):
        """Initialize with Gemini client."""
        self.client = client or get_gemini_client()
        self.model = IMAGE_MODEL

    async def edit_image(
        self,
        image: str,
        prompt: str,
        mime_type: str = "image/jpeg",
    ) -> Optional[PlayableResource]:
        """
        Apply `prompt` to a base64 image.

        Args:
            image: base64 image data (no data: prefix)
            prompt: What to change ("Add a cowboy hat")
            mime_type: MIME type of `image`

        Returns:
            PlayableResource with a data URI, or None if no image came back

        Raises:
            DecodeError: `image` is not valid base64 (nothing is sent)
        """
        payload = encode_base64(image, mime_type)

        logger.info(f"[ImageEditor] Editing {mime_type} image: {prompt[:60]}")

        try:
            response = await asyncio.to_thread(
                self.client.models.generate_content,
                model=self.model,
                contents=[
                    types.Part.from_bytes(data=payload.raw_bytes(), mime_type=payload.mime_type),
                    prompt,
                ],
                config=types.GenerateContentConfig(
                    response_modalities=["TEXT", "IMAGE"],
                ),
            )
        except Exception as e:
            logger.error(f"[ImageEditor] Image edit error: {e}")
            raise

        result = decode(response)
        if result is None:
            logger.warning("[ImageEditor] No image in response")
        return result

    async def cast_spell(
        self,
        image: str,
        spell_label: str,
        mime_type: str = "image/jpeg",
    ) -> Optional[PlayableResource]:
        """Edit with one of the canned MAGIC_SPELLS, looked up by label."""
        spell = get_spell(spell_label)
        return await self.edit_image(image, spell["prompt"], mime_type)
