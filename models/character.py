"""
Character model - the friendly guide a child picks on the home screen.

The chosen character's name is woven into stories and greetings.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Character:
    """A built-in story character."""

    id: str
    name: str
    emoji: str
    description: str

    def __post_init__(self):
        """Validate character on creation."""
        if not self.name:
            raise ValueError("Character must have a name")

    @property
    def greeting(self) -> str:
        """Line spoken when the character's story screen opens."""
        return f"Hi! I am {self.name}. Pick a picture to hear a story!"

    def to_dict(self) -> dict:
        """Serialize character to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "emoji": self.emoji,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Character":
        """Deserialize character from dictionary."""
        return cls(
            id=data["id"],
            name=data["name"],
            emoji=data.get("emoji", ""),
            description=data.get("description", ""),
        )


CHARACTERS = [
    Character(id="1", name="Robo-Beep", emoji="🤖", description="Friendly Robot"),
    Character(id="2", name="Rexy", emoji="🦖", description="Happy Dino"),
    Character(id="3", name="Sparkles", emoji="🦄", description="Magic Unicorn"),
    Character(id="4", name="Zoomer", emoji="🚀", description="Space Explorer"),
]


def get_character(character_id: str) -> Optional[Character]:
    """Look up a built-in character by id."""
    for character in CHARACTERS:
        if character.id == character_id:
            return character
    return None
