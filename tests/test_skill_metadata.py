"""
Test: Skill Metadata Parsing

Verifies that all SKILL.md files:
1. Exist in their skill directories
2. Have valid YAML frontmatter
3. Contain required fields (name, description, triggers, keywords)

Run: python -m pytest tests/test_skill_metadata.py
"""

import sys
from pathlib import Path

import pytest
import yaml

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from skills import list_skills

SKILLS_DIR = Path(__file__).parent.parent / "skills"

EXPECTED_SKILLS = [
    "media_codec",
    "generate_story",
    "generate_puzzle",
    "edit_image",
    "generate_video",
    "speak_text",
]


def _frontmatter(skill_name: str) -> dict:
    content = (SKILLS_DIR / skill_name / "SKILL.md").read_text(encoding="utf-8")
    assert content.startswith("---"), "Missing YAML frontmatter (should start with ---)"
    end = content.find("---", 3)
    assert end > 0, "Invalid frontmatter (missing closing ---)"
    return yaml.safe_load(content[3:end].strip())


@pytest.mark.parametrize("skill_name", EXPECTED_SKILLS)
def test_skill_metadata(skill_name):
    """Test that each skill's metadata parses correctly."""
    assert (SKILLS_DIR / skill_name / "SKILL.md").exists()

    metadata = _frontmatter(skill_name)

    missing = [f for f in ["name", "description", "triggers", "keywords"] if f not in metadata]
    assert not missing, f"Missing required fields: {missing}"
    assert metadata["name"] == skill_name
    assert isinstance(metadata["triggers"], list)
    assert isinstance(metadata["keywords"], list)


def test_list_skills():
    """Test list_skills() finds every skill."""
    names = {skill["name"] for skill in list_skills()}
    assert names == set(EXPECTED_SKILLS)


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
