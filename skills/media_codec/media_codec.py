"""
Media Codec Skill - moves images between uploads, Gemini and the screen.

Encoding: an upload arrives as a data URI (what a browser FileReader gives us)
or as raw bytes, and becomes a MediaPayload (MIME type + base64).

Decoding: Gemini returns edited images as inline data parts. The first one is
wrapped back into a data URI the UI can drop straight into an <img>.
"""

import base64
import binascii
import logging
import re
from pathlib import Path
from typing import Optional

from models.media import MediaPayload, PlayableResource

logger = logging.getLogger(__name__)

DATA_URI_PATTERN = re.compile(r"^data:(.+);base64,(.+)$", re.DOTALL)

DEFAULT_IMAGE_MIME_TYPE = "image/png"

MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
    ".gif": "image/gif",
}


class DecodeError(ValueError):
    """Raised when an upload is not a readable base64 data URI."""


def encode(data_uri: str) -> MediaPayload:
    """
    Parse `data:<mime>;base64,<payload>` into a MediaPayload.

    No partial acceptance: anything that does not match the pattern, or whose
    payload is not valid base64, raises DecodeError.
    """
    if not isinstance(data_uri, str):
        raise DecodeError(f"Expected a data URI string, got {type(data_uri).__name__}")

    match = DATA_URI_PATTERN.match(data_uri.strip())
    if not match:
        raise DecodeError("Not a base64 data URI")

    return encode_base64(match.group(2), match.group(1))


def encode_base64(data: str, mime_type: str) -> MediaPayload:
    """Validate bare base64 (no data: prefix) into a MediaPayload."""
    if not isinstance(data, str) or not data.strip():
        raise DecodeError("Empty upload")

    try:
        base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"Invalid base64 payload: {e}") from e

    return MediaPayload(mime_type=mime_type, data=data)


def encode_upload(upload: str, mime_type: str = "image/jpeg") -> MediaPayload:
    """
    Accept an upload as the UI sends it: a data URI, or bare base64 plus its
    MIME type. Both forms are validated the same way.
    """
    if isinstance(upload, str) and upload.startswith("data:"):
        return encode(upload)
    return encode_base64(upload, mime_type)


def encode_bytes(raw: bytes, mime_type: str) -> MediaPayload:
    """Build a payload from raw upload bytes."""
    if not raw:
        raise DecodeError("Empty upload")
    return MediaPayload(
        mime_type=mime_type,
        data=base64.b64encode(raw).decode("ascii"),
    )


def encode_file(path: Path) -> MediaPayload:
    """Read an image file from disk, inferring the MIME type from its suffix."""
    mime_type = MIME_TYPES.get(path.suffix.lower(), "image/jpeg")
    with open(path, "rb") as f:
        return encode_bytes(f.read(), mime_type)


def _first_candidate_parts(response) -> list:
    """Parts of the first candidate, or [] when the response has none."""
    candidates = getattr(response, "candidates", None)
    if not candidates:
        return []
    content = getattr(candidates[0], "content", None)
    if content is None:
        return []
    return getattr(content, "parts", None) or []


def decode(response) -> Optional[PlayableResource]:
    """
    Wrap the first inline image of a Gemini response as a data URI.

    Returns None when the model sent no image (text only, empty, blocked).
    Absence means "no edit produced" and is never an error.
    """
    for part in _first_candidate_parts(response):
        inline = getattr(part, "inline_data", None)
        if inline is None or not inline.data:
            continue

        # The SDK hands back raw bytes; tolerate an already-encoded string
        data = inline.data
        if isinstance(data, bytes):
            data = base64.b64encode(data).decode("ascii")

        mime_type = getattr(inline, "mime_type", None) or DEFAULT_IMAGE_MIME_TYPE
        return PlayableResource(
            uri=f"data:{mime_type};base64,{data}",
            mime_type=mime_type,
        )

    logger.info("[MediaCodec] Response has no inline image part")
    return None
