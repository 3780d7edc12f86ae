"""
Skills - Composable capabilities for Wonder Studio.

Each skill is a directory containing:
- SKILL.md: Metadata with YAML frontmatter + detailed instructions
- skill_name.py: Implementation
"""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

# Skill directories
SKILLS_DIR = Path(__file__).parent

# Import skills from subdirectories
from .media_codec.media_codec import (
    DecodeError,
    encode,
    encode_base64,
    encode_upload,
    encode_bytes,
    encode_file,
    decode,
)
from .generate_story.generate_story import StoryGenerator
from .generate_puzzle.generate_puzzle import PuzzleGenerator
from .edit_image.edit_image import ImageEditor
from .generate_video.generate_video import (
    VideoGenerator,
    PollPolicy,
    VideoGenerationError,
    VideoBlockedError,
    VideoCancelledError,
    build_video_prompt,
)
from .speak_text.speak_text import Narrator

__all__ = [
    # Media
    "DecodeError",
    "encode",
    "encode_base64",
    "encode_upload",
    "encode_bytes",
    "encode_file",
    "decode",
    # Generation
    "StoryGenerator",
    "PuzzleGenerator",
    "ImageEditor",
    "VideoGenerator",
    "PollPolicy",
    "VideoGenerationError",
    "VideoBlockedError",
    "VideoCancelledError",
    "build_video_prompt",
    # Narration
    "Narrator",
    "SKILLS_DIR",
]


def list_skills() -> list[dict]:
    """
    List all available skills with their metadata.

    Returns list of dicts with name, description, and path.
    """
    import yaml

    skills = []
    for skill_dir in sorted(SKILLS_DIR.iterdir()):
        if skill_dir.is_dir() and not skill_dir.name.startswith("_"):
            skill_md = skill_dir / "SKILL.md"
            if skill_md.exists():
                content = skill_md.read_text(encoding="utf-8")
                # Extract YAML frontmatter
                if content.startswith("---"):
                    end = content.find("---", 3)
                    if end > 0:
                        frontmatter = content[3:end].strip()
                        try:
                            metadata = yaml.safe_load(frontmatter)
                            skills.append({
                                "name": metadata.get("name", skill_dir.name),
                                "description": metadata.get("description", ""),
                                "triggers": metadata.get("triggers", []),
                                "keywords": metadata.get("keywords", []),
                                "path": str(skill_dir),
                            })
                        except yaml.YAMLError as e:
                            logger.warning(f"[Skills] Bad frontmatter in {skill_md}: {e}")
    return skills
