"""
Puzzle Generation Skill - emoji pattern puzzles with a JSON response schema.

The response schema asks for exactly four fields:
    question, options, correctIndex, explanation

Replies are parsed into PuzzleParsed | ParseFailure. A failure is logged and
the caller gets an empty dict, which the front end treats as "try another".
"""

import asyncio
import logging

from google import genai
from google.genai import types

from config import TEXT_MODEL, get_gemini_client
from models.puzzle import ParseFailure, PuzzleParseResult, parse_puzzle
from agent.prompts import Prompts

logger = logging.getLogger(__name__)

PUZZLE_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "question": types.Schema(type=types.Type.STRING),
        "options": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(type=types.Type.STRING),
        ),
        "correctIndex": types.Schema(type=types.Type.INTEGER),
        "explanation": types.Schema(type=types.Type.STRING),
    },
)


class PuzzleGenerator:
    """Ask Gemini for a "what comes next?" emoji puzzle."""

    def __init__(self, client: genai.Client = None):
        """Initialize with Gemini client."""
        self.client = client or get_gemini_client()
        self.model = TEXT_MODEL

    async def request_puzzle(self) -> PuzzleParseResult:
        """Call Gemini and return the tagged parse result."""
        response = await asyncio.to_thread(
            self.client.models.generate_content,
            model=self.model,
            contents=Prompts.PUZZLE,
            config=types.GenerateContentConfig(
                response_mime_type="application/json",
                response_schema=PUZZLE_SCHEMA,
            ),
        )
        return parse_puzzle(response.text or "")

    async def generate_puzzle(self) -> dict:
        """
        Generate a puzzle as a camelCase dict.

        Returns {} when the reply is empty or does not match the schema.
        """
        result = await self.request_puzzle()

        if isinstance(result, ParseFailure):
            logger.warning(f"[Puzzle] Could not parse puzzle ({result.reason}). Raw: {result.raw[:200]}")
            return {}

        logger.info(f"[Puzzle] New puzzle: {result.puzzle.question}")
        return result.puzzle.to_dict()
