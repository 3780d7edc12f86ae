"""
Data models for Wonder Studio.

These models carry data between the child's screen and Gemini:
- Characters (the friendly guides)
- Media (uploaded images, video jobs, playable results)
- Puzzles (emoji pattern puzzles and their parse results)
"""

from .character import Character, CHARACTERS, get_character
from .media import MediaPayload, GenerationRequest, PlayableResource
from .puzzle import Puzzle, PuzzleParsed, ParseFailure, PuzzleParseResult, parse_puzzle

__all__ = [
    "Character",
    "CHARACTERS",
    "get_character",
    "MediaPayload",
    "GenerationRequest",
    "PlayableResource",
    "Puzzle",
    "PuzzleParsed",
    "ParseFailure",
    "PuzzleParseResult",
    "parse_puzzle",
]
