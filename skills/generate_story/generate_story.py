"""
Story Generation Skill - three-sentence bedtime stories with Gemini Flash.
"""

import asyncio
import logging

from google import genai

from config import TEXT_MODEL, get_gemini_client
from agent.prompts import Prompts

logger = logging.getLogger(__name__)


class StoryGenerator:
    """Write tiny, happy stories starring the child's chosen character."""

    def __init__(self, client: genai.Client = None):
        """Initialize with Gemini client."""
        self.client = client or get_gemini_client()
        self.model = TEXT_MODEL

    async def generate_story(self, character_name: str, theme: str) -> str:
        """
        Generate a story about `character_name` who loves `theme`.

        An empty reply falls back to "Once upon a time..." so the screen
        always has something to read. API errors propagate.
        """
        prompt = Prompts.STORY.format(character_name=character_name, theme=theme)

        logger.info(f"[Story] Writing story: {character_name} + {theme}")

        response = await asyncio.to_thread(
            self.client.models.generate_content,
            model=self.model,
            contents=prompt,
        )

        story = (response.text or "").strip()
        if not story:
            logger.warning("[Story] Empty response, using fallback opening")
            return Prompts.STORY_FALLBACK
        return story
