"""
Puzzle model - an emoji "what comes next?" pattern puzzle.

Gemini is asked for a fixed four-field JSON object. Its reply is turned into
a tagged result so callers never trust the raw shape:

    PuzzleParsed(puzzle)         the reply matched the schema
    ParseFailure(raw, reason)    empty, malformed or wrong-shaped reply
"""

import json
from dataclasses import dataclass, field
from typing import Union


@dataclass
class Puzzle:
    """An emoji pattern puzzle with one correct option."""

    question: str
    options: list[str] = field(default_factory=list)
    correct_index: int = 0
    explanation: str = ""

    def __post_init__(self):
        if not self.options:
            raise ValueError("Puzzle needs at least one option")
        if not 0 <= self.correct_index < len(self.options):
            raise ValueError(
                f"correct_index {self.correct_index} out of range for {len(self.options)} options"
            )

    @property
    def answer(self) -> str:
        return self.options[self.correct_index]

    def check_answer(self, index: int) -> bool:
        """True when the child tapped the right option."""
        return index == self.correct_index

    def to_dict(self) -> dict:
        """Serialize with the camelCase keys the front end expects."""
        return {
            "question": self.question,
            "options": list(self.options),
            "correctIndex": self.correct_index,
            "explanation": self.explanation,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Puzzle":
        """Deserialize from the camelCase wire shape."""
        return cls(
            question=data["question"],
            options=list(data["options"]),
            correct_index=data["correctIndex"],
            explanation=data.get("explanation", ""),
        )


@dataclass(frozen=True)
class PuzzleParsed:
    puzzle: Puzzle


@dataclass(frozen=True)
class ParseFailure:
    raw: str
    reason: str


PuzzleParseResult = Union[PuzzleParsed, ParseFailure]


def parse_puzzle(text: str) -> PuzzleParseResult:
    """
    Parse a structured-generation reply into a Puzzle.

    Never raises: anything that is not a complete, well-typed puzzle comes
    back as ParseFailure.
    """
    if not text or not text.strip():
        return ParseFailure(raw=text or "", reason="empty response")

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        return ParseFailure(raw=text, reason=f"invalid JSON: {e}")

    if not isinstance(data, dict):
        return ParseFailure(raw=text, reason=f"expected object, got {type(data).__name__}")

    missing = [k for k in ("question", "options", "correctIndex") if k not in data]
    if missing:
        return ParseFailure(raw=text, reason=f"missing fields: {missing}")

    if not isinstance(data["question"], str):
        return ParseFailure(raw=text, reason="question is not a string")
    if not isinstance(data["options"], list) or not all(isinstance(o, str) for o in data["options"]):
        return ParseFailure(raw=text, reason="options is not a list of strings")
    if isinstance(data["correctIndex"], bool) or not isinstance(data["correctIndex"], int):
        return ParseFailure(raw=text, reason="correctIndex is not an integer")
    if not isinstance(data.get("explanation", ""), str):
        return ParseFailure(raw=text, reason="explanation is not a string")

    try:
        return PuzzleParsed(puzzle=Puzzle.from_dict(data))
    except ValueError as e:
        return ParseFailure(raw=text, reason=str(e))
