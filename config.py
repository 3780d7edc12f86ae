"""
Configuration for Wonder Studio.

Model Selection:
- Stories & puzzles: gemini-2.5-flash
- Magic photos: gemini-2.5-flash-image (Nano Banana)
- Movies: veo-3.1-fast-generate-preview
- Narration: gemini-2.5-flash-preview-tts

API Access:
- One process-wide key (GOOGLE_API_KEY, or API_KEY for AI Studio exports)
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# =============================================================================
# Model Configuration
# =============================================================================

TEXT_MODEL = os.getenv("TEXT_MODEL", "gemini-2.5-flash")
# Nano Banana - image editing with an input photo
IMAGE_MODEL = os.getenv("IMAGE_MODEL", "gemini-2.5-flash-image")
VEO_MODEL = os.getenv("VEO_MODEL", "veo-3.1-fast-generate-preview")
TTS_MODEL = os.getenv("TTS_MODEL", "gemini-2.5-flash-preview-tts")

# =============================================================================
# API Configuration
# =============================================================================

GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY") or os.getenv("API_KEY")


def get_gemini_client():
    """
    Build the single Gemini client shared by every skill.

    Construct once at startup and pass it in; skills never read the key.
    """
    from google import genai

    if not GOOGLE_API_KEY:
        raise ValueError(
            "GOOGLE_API_KEY not set. Export GOOGLE_API_KEY (or API_KEY) "
            "with an AI Studio key that has Veo access."
        )
    return genai.Client(api_key=GOOGLE_API_KEY)


# =============================================================================
# Paths
# =============================================================================

PROJECT_ROOT = Path(__file__).parent.resolve()  # Always absolute
ASSETS_DIR = PROJECT_ROOT / "assets"
# Always resolve OUTPUT_DIR relative to PROJECT_ROOT, not CWD
_output_env = os.getenv("OUTPUT_DIR")
if _output_env:
    OUTPUT_DIR = (PROJECT_ROOT / _output_env).resolve()
else:
    OUTPUT_DIR = ASSETS_DIR / "outputs"
SKILLS_DIR = PROJECT_ROOT / "skills"

VIDEOS_DIR = OUTPUT_DIR / "videos"
AUDIO_DIR = OUTPUT_DIR / "audio"

# Ensure directories exist
for dir_path in [ASSETS_DIR, OUTPUT_DIR, VIDEOS_DIR, AUDIO_DIR]:
    dir_path.mkdir(parents=True, exist_ok=True)

# =============================================================================
# Generation Settings
# =============================================================================

# Video generation
VIDEO_ASPECT_RATIOS = ("16:9", "9:16")
DEFAULT_VIDEO_ASPECT_RATIO = "16:9"
VIDEO_RESOLUTION = "720p"
VIDEO_COUNT = 1

# Veo polling: starts at 5s, grows by VEO_POLL_BACKOFF, capped
VEO_POLL_INTERVAL_SECONDS = float(os.getenv("VEO_POLL_INTERVAL_SECONDS", "5"))
VEO_POLL_BACKOFF = float(os.getenv("VEO_POLL_BACKOFF", "1.5"))
VEO_POLL_MAX_INTERVAL_SECONDS = float(os.getenv("VEO_POLL_MAX_INTERVAL_SECONDS", "30"))
VEO_POLL_JITTER_SECONDS = float(os.getenv("VEO_POLL_JITTER_SECONDS", "0"))
VEO_MAX_WAIT_SECONDS = float(os.getenv("VEO_MAX_WAIT_SECONDS", "600"))  # 10 minutes max
_max_attempts_env = os.getenv("VEO_MAX_POLL_ATTEMPTS")
VEO_MAX_POLL_ATTEMPTS = int(_max_attempts_env) if _max_attempts_env else None

# Narration
DEFAULT_VOICE = "Puck"

# Generated files the server keeps on disk before releasing the oldest
MAX_KEPT_VIDEOS = int(os.getenv("MAX_KEPT_VIDEOS", "20"))
MAX_KEPT_AUDIO = int(os.getenv("MAX_KEPT_AUDIO", "50"))


# =============================================================================
# Logging
# =============================================================================

import logging

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

# =============================================================================
# Print Configuration (for debugging)
# =============================================================================


def print_config():
    """Print current configuration for debugging."""
    print(f"""
Wonder Studio Configuration
===========================
Text Model: {TEXT_MODEL}
Image Model: {IMAGE_MODEL}
Video Model: {VEO_MODEL}
TTS Model: {TTS_MODEL}
API Key: {"set" if GOOGLE_API_KEY else "not set"}
Veo Polling: every {VEO_POLL_INTERVAL_SECONDS}s x{VEO_POLL_BACKOFF} (max {VEO_MAX_WAIT_SECONDS}s)
Project Root: {PROJECT_ROOT}
Output Dir: {OUTPUT_DIR}
Log Level: {LOG_LEVEL}
""")


if __name__ == "__main__":
    print_config()
