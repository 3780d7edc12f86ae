"""
API Server for Wonder Studio.

This FastAPI server provides the local interface the kids' UI calls:
1. Catalogues (characters, story themes, spells, movie emojis)
2. Story, puzzle, magic photo and movie generation with Gemini
3. Best-effort narration
4. Static serving of generated media under /assets

Run with: uvicorn ui.api_server:app --reload --port 8000
"""

import logging
import time
from pathlib import Path
from typing import Literal, Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel

from google import genai

from config import (
    ASSETS_DIR,
    DEFAULT_VOICE,
    MAX_KEPT_AUDIO,
    MAX_KEPT_VIDEOS,
    TEXT_MODEL,
    VEO_MODEL,
    get_gemini_client,
)
from models.character import CHARACTERS, get_character
from models.media import MediaPayload, PlayableResource
from models.puzzle import Puzzle
from agent.prompts import Prompts, MAGIC_SPELLS, STORY_THEMES, VIDEO_ACTIONS, VIDEO_SUBJECTS, get_spell
from skills import list_skills
from skills.media_codec.media_codec import DecodeError, encode_upload
from skills.generate_story.generate_story import StoryGenerator
from skills.generate_puzzle.generate_puzzle import PuzzleGenerator
from skills.edit_image.edit_image import ImageEditor
from skills.generate_video.generate_video import (
    VideoBlockedError,
    VideoGenerator,
    build_video_prompt,
)
from skills.speak_text.speak_text import Narrator, VOICES

# =============================================================================
# Setup Logging - File + Console
# =============================================================================

LOGS_DIR = Path(__file__).parent.parent / "logs"
LOGS_DIR.mkdir(exist_ok=True)

_session_start = time.strftime("%Y%m%d_%H%M%S")
_log_file = LOGS_DIR / f"server_{_session_start}.log"

# Use force=True to override any existing handlers (uvicorn issue)
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.FileHandler(_log_file, mode='a'),
        logging.StreamHandler()
    ],
    force=True
)
logger = logging.getLogger("api_server")
logger.info(f"Server session started. Log file: {_log_file}")

# Initialize FastAPI app
app = FastAPI(
    title="Wonder Studio API",
    description="Stories, puzzles, magic photos and movies for kids, powered by Gemini",
    version="0.1.0",
)

# CORS middleware for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.mount("/assets", StaticFiles(directory=ASSETS_DIR, check_dir=False), name="assets")

# =============================================================================
# Dependencies - one client per process, injected into every skill
# =============================================================================

_client: Optional[genai.Client] = None
_narrator: Optional[Narrator] = None


class MediaShelf:
    """
    Generated files the UI may still be showing, by id, oldest first.

    Keeping more than `limit` releases the oldest, so files of views the
    client never tore down do not pile up on disk.
    """

    def __init__(self, limit: int):
        self.limit = max(limit, 1)
        self._items: dict[str, PlayableResource] = {}

    def keep(self, resource: PlayableResource) -> str:
        self._items[resource.id] = resource
        while len(self._items) > self.limit:
            oldest_id = next(iter(self._items))
            self._items.pop(oldest_id).release()
            logger.info(f"Released {oldest_id} (over the limit of {self.limit})")
        return resource.id

    def release(self, resource_id: str) -> bool:
        resource = self._items.pop(resource_id, None)
        if resource is None:
            return False
        resource.release()
        return True

    def __contains__(self, resource_id: str) -> bool:
        return resource_id in self._items

    def __len__(self) -> int:
        return len(self._items)


_videos = MediaShelf(MAX_KEPT_VIDEOS)
_audio = MediaShelf(MAX_KEPT_AUDIO)


def _shared_client() -> genai.Client:
    """Build the process-wide client on first use. Raises ValueError without a key."""
    global _client
    if _client is None:
        _client = get_gemini_client()
    return _client


def get_client() -> genai.Client:
    try:
        return _shared_client()
    except ValueError as e:
        logger.error(str(e))
        raise HTTPException(status_code=503, detail="Gemini API key not configured")


def get_narrator() -> Optional[Narrator]:
    """The shared narrator, or None when no client can be built (narration is optional)."""
    global _narrator
    if _narrator is None:
        try:
            _narrator = Narrator(client=_shared_client())
        except ValueError as e:
            logger.warning(f"Narration disabled: {e}")
            return None
    return _narrator


def get_video_generator(client: genai.Client = Depends(get_client)) -> VideoGenerator:
    return VideoGenerator(client=client)


def _upload_payload(image: str, mime_type: str) -> MediaPayload:
    try:
        return encode_upload(image, mime_type)
    except DecodeError as e:
        raise HTTPException(status_code=400, detail=str(e))



# =============================================================================
# Request/Response Models
# =============================================================================

class StoryRequest(BaseModel):
    """Request a story for a character and theme."""
    theme: str
    character_id: Optional[str] = None
    character_name: Optional[str] = None
    narrate: bool = False  # Also read the story aloud


class StoryResponse(BaseModel):
    story: str
    character_name: str
    audio_id: Optional[str] = None
    audio_url: Optional[str] = None


class PuzzleCheckRequest(BaseModel):
    """The puzzle as served by /api/puzzle plus the tapped option."""
    puzzle: dict
    answer_index: int


class PuzzleCheckResponse(BaseModel):
    correct: bool
    explanation: str
    say: str


class EditImageRequest(BaseModel):
    """
    Apply a magic spell to a photo.

    `image` is a data URI (preferred) or bare base64 with `mime_type`.
    Give either a free-form `prompt` or a `spell` label.
    """
    image: str
    mime_type: str = "image/jpeg"
    prompt: Optional[str] = None
    spell: Optional[str] = None


class EditImageResponse(BaseModel):
    image: Optional[str] = None  # data: URI, None when no edit was produced
    say: str


class VideoRequest(BaseModel):
    """Make a movie from a prompt or emoji subject + action, optionally from a photo."""
    prompt: Optional[str] = None
    subject: Optional[str] = None
    action: Optional[str] = None
    image: Optional[str] = None
    mime_type: str = "image/jpeg"
    aspect_ratio: Literal["16:9", "9:16"] = "16:9"


class VideoResponse(BaseModel):
    video_id: Optional[str] = None
    url: Optional[str] = None
    say: str


class SpeakRequest(BaseModel):
    text: str
    voice: str = DEFAULT_VOICE


class SpeakResponse(BaseModel):
    audio_id: Optional[str] = None  # DELETE /api/audio/{audio_id} once played
    audio_url: Optional[str] = None


# =============================================================================
# API Endpoints
# =============================================================================

@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "model": TEXT_MODEL, "video_model": VEO_MODEL}


@app.get("/api/catalog")
async def catalog():
    """Everything the home screen and pickers need to render."""
    return {
        "characters": [c.to_dict() for c in CHARACTERS],
        "story_themes": STORY_THEMES,
        "spells": MAGIC_SPELLS,
        "video_subjects": VIDEO_SUBJECTS,
        "video_actions": VIDEO_ACTIONS,
        "voices": list(VOICES),
        "skills": [{"name": s["name"], "description": s["description"]} for s in list_skills()],
    }


@app.post("/api/story", response_model=StoryResponse)
async def story(
    request: StoryRequest,
    client: genai.Client = Depends(get_client),
    narrator: Optional[Narrator] = Depends(get_narrator),
):
    """Generate a three-sentence story, optionally narrated."""
    character_name = request.character_name
    if not character_name and request.character_id:
        character = get_character(request.character_id)
        if character is None:
            raise HTTPException(status_code=404, detail=f"Unknown character: {request.character_id}")
        character_name = character.name
    if not character_name:
        raise HTTPException(status_code=400, detail="character_id or character_name required")

    try:
        text = await StoryGenerator(client=client).generate_story(character_name, request.theme)
    except Exception as e:
        logger.error(f"Story generation failed: {e}")
        raise HTTPException(status_code=502, detail=Prompts.SAY_STORY_FAILED)

    response = StoryResponse(story=text, character_name=character_name)
    if request.narrate and narrator is not None:
        clip = await narrator.speak(text)
        if clip is not None:
            response.audio_id = _audio.keep(clip)
            response.audio_url = clip.uri
    return response


@app.post("/api/puzzle")
async def puzzle(client: genai.Client = Depends(get_client)):
    """
    Generate an emoji puzzle.

    Returns {} when Gemini's reply could not be used; the UI offers another.
    """
    try:
        return await PuzzleGenerator(client=client).generate_puzzle()
    except Exception as e:
        logger.error(f"Puzzle generation failed: {e}")
        raise HTTPException(status_code=502, detail=Prompts.SAY_PUZZLE_FAILED)


@app.post("/api/puzzle/check", response_model=PuzzleCheckResponse)
async def check_puzzle(request: PuzzleCheckRequest):
    """Check the tapped option against the puzzle's answer."""
    try:
        puzzle = Puzzle.from_dict(request.puzzle)
    except (KeyError, TypeError, ValueError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid puzzle: {e}")

    correct = puzzle.check_answer(request.answer_index)
    return PuzzleCheckResponse(
        correct=correct,
        explanation=puzzle.explanation,
        say=Prompts.SAY_PUZZLE_CORRECT if correct else Prompts.SAY_PUZZLE_WRONG,
    )


@app.post("/api/edit-image", response_model=EditImageResponse)
async def edit_image(request: EditImageRequest, client: genai.Client = Depends(get_client)):
    """Apply a magic spell (or free-form prompt) to a photo."""
    payload = _upload_payload(request.image, request.mime_type)

    if request.spell:
        try:
            prompt = get_spell(request.spell)["prompt"]
        except KeyError:
            raise HTTPException(status_code=400, detail=f"Unknown spell: {request.spell}")
    elif request.prompt:
        prompt = request.prompt
    else:
        raise HTTPException(status_code=400, detail="prompt or spell required")

    try:
        result = await ImageEditor(client=client).edit_image(payload.data, prompt, payload.mime_type)
    except Exception as e:
        logger.error(f"Image edit failed: {e}")
        raise HTTPException(status_code=502, detail=Prompts.SAY_MAGIC_FAILED)

    if result is None:
        return EditImageResponse(image=None, say=Prompts.SAY_MAGIC_FAILED)
    return EditImageResponse(image=result.uri, say=Prompts.SAY_MAGIC_DONE)


@app.post("/api/video", response_model=VideoResponse)
async def video(request: VideoRequest, generator: VideoGenerator = Depends(get_video_generator)):
    """
    Make a short movie with Veo.

    Blocks until Veo finishes (or the poll policy gives up).
    """
    prompt = request.prompt
    if not prompt and (request.subject or request.action):
        prompt = build_video_prompt(request.subject, request.action)

    image = _upload_payload(request.image, request.mime_type) if request.image else None

    if not prompt and not image:
        raise HTTPException(status_code=400, detail="prompt, subject/action or image required")

    logger.info(f"Creating movie: {prompt or Prompts.ANIMATE_IMAGE_DEFAULT} (image: {bool(image)})")

    try:
        result = await generator.generate_veo_video(
            prompt or "",
            image=image,
            aspect_ratio=request.aspect_ratio,
        )
    except VideoBlockedError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except TimeoutError as e:
        raise HTTPException(status_code=504, detail=str(e))
    except Exception as e:
        logger.error(f"Video generation failed: {e}")
        raise HTTPException(status_code=502, detail=Prompts.SAY_VIDEO_FAILED)

    if result is None:
        return VideoResponse(say=Prompts.SAY_VIDEO_FAILED)

    _videos.keep(result)
    return VideoResponse(video_id=result.id, url=result.uri, say=Prompts.SAY_VIDEO_DONE)


@app.delete("/api/video/{video_id}")
async def release_video(video_id: str):
    """Release a movie once its view is torn down."""
    if not _videos.release(video_id):
        raise HTTPException(status_code=404, detail=f"Unknown video: {video_id}")
    return {"released": video_id}


@app.post("/api/speak", response_model=SpeakResponse)
async def speak(request: SpeakRequest, narrator: Optional[Narrator] = Depends(get_narrator)):
    """Narrate a line. Never fails; audio_url is None when narration glitched."""
    if narrator is None:
        return SpeakResponse()

    clip = await narrator.speak(request.text, request.voice)
    if clip is None:
        return SpeakResponse()
    return SpeakResponse(audio_id=_audio.keep(clip), audio_url=clip.uri)


@app.delete("/api/audio/{audio_id}")
async def release_audio(audio_id: str):
    """Release a narration clip once it has been played."""
    if not _audio.release(audio_id):
        raise HTTPException(status_code=404, detail=f"Unknown audio: {audio_id}")
    return {"released": audio_id}

