"""
Media models - payloads moving between uploads, Gemini and the display layer.

- MediaPayload: an uploaded image ready for transport (MIME type + base64)
- GenerationRequest: one immutable video generation job
- PlayableResource: a locally resolvable handle the UI can show or play
"""

import base64
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from config import ASSETS_DIR, VIDEO_ASPECT_RATIOS, DEFAULT_VIDEO_ASPECT_RATIO

logger = logging.getLogger(__name__)


def asset_url(path: Path) -> str:
    """Public URL for a file under assets/, served by the API's static mount."""
    try:
        rel = path.resolve().relative_to(ASSETS_DIR.resolve())
        return f"/assets/{rel.as_posix()}"
    except ValueError:
        return path.resolve().as_uri()


@dataclass(frozen=True)
class MediaPayload:
    """An image ready to send to Gemini."""

    mime_type: str
    data: str  # base64, no data: prefix

    def raw_bytes(self) -> bytes:
        """Decode the base64 payload back to bytes."""
        return base64.b64decode(self.data, validate=True)

    def to_data_uri(self) -> str:
        """Re-assemble the data URI the payload was parsed from."""
        return f"data:{self.mime_type};base64,{self.data}"


@dataclass(frozen=True)
class GenerationRequest:
    """
    A video generation job.

    Frozen: once submitted, the prompt, image and aspect ratio never change.
    The presence of `image` alone decides image-to-video vs text-to-video.
    """

    prompt: str
    image: Optional[MediaPayload] = None
    aspect_ratio: str = DEFAULT_VIDEO_ASPECT_RATIO

    def __post_init__(self):
        if self.aspect_ratio not in VIDEO_ASPECT_RATIOS:
            raise ValueError(
                f"aspect_ratio must be one of {VIDEO_ASPECT_RATIOS}, got {self.aspect_ratio!r}"
            )

    @property
    def is_image_conditioned(self) -> bool:
        return self.image is not None


@dataclass
class PlayableResource:
    """
    A generated image or video the UI can display.

    Images are carried inline as a data: URI. Videos are written to disk and
    addressed by URL; call release() (or use as a context manager) when the
    owning view goes away.
    """

    uri: str
    mime_type: str
    path: Optional[Path] = None

    @property
    def id(self) -> Optional[str]:
        """File stem for disk-backed resources."""
        return self.path.stem if self.path else None

    @property
    def is_released(self) -> bool:
        return self.path is not None and not self.path.exists()

    def read_bytes(self) -> bytes:
        """Return the resource's bytes, from disk or from the data URI."""
        if self.path is not None:
            return self.path.read_bytes()
        _, _, payload = self.uri.partition(";base64,")
        return base64.b64decode(payload)

    def release(self) -> None:
        """Delete the backing file. Safe to call more than once."""
        if self.path is not None and self.path.exists():
            self.path.unlink()
            logger.info(f"[PlayableResource] Released {self.path.name}")

    def __enter__(self) -> "PlayableResource":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
