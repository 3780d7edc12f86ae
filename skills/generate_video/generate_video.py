"""
Video Generation Skill - Veo 3.1 movies from emoji prompts or a photo.

This skill turns a child's choices into a short cartoon clip:
- Text-to-video from a subject + action prompt
- Image-to-video when a photo was uploaded (the photo is the first frame)

NOTE: Veo uses async operations pattern (generate_videos + polling), not generate_content.
The flow is strictly sequential: submit -> poll until done -> download once.
"""

import asyncio
import logging
import random
import threading
import time
import uuid
from dataclasses import dataclass
from typing import Callable, Optional, Union

from google import genai
from google.genai import types

from config import (
    DEFAULT_VIDEO_ASPECT_RATIO,
    VEO_MAX_POLL_ATTEMPTS,
    VEO_MAX_WAIT_SECONDS,
    VEO_MODEL,
    VEO_POLL_BACKOFF,
    VEO_POLL_INTERVAL_SECONDS,
    VEO_POLL_JITTER_SECONDS,
    VEO_POLL_MAX_INTERVAL_SECONDS,
    VIDEO_COUNT,
    VIDEO_RESOLUTION,
    VIDEOS_DIR,
    get_gemini_client,
)
from models.media import GenerationRequest, MediaPayload, PlayableResource, asset_url
from skills.media_codec.media_codec import encode_base64
from agent.prompts import Prompts, VIDEO_ACTIONS, VIDEO_SUBJECTS

logger = logging.getLogger(__name__)


class VideoGenerationError(RuntimeError):
    """Veo finished the operation with an error."""


class VideoBlockedError(VideoGenerationError):
    """Veo finished but filtered every video (safety / policy)."""

    def __init__(self, reasons: Optional[list[str]] = None):
        self.reasons = list(reasons or [])
        detail = "; ".join(self.reasons) if self.reasons else "no reason given"
        super().__init__(f"Video blocked by content policy: {detail}")


class VideoCancelledError(VideoGenerationError):
    """The caller cancelled the poll loop."""


@dataclass
class PollPolicy:
    """
    How long and how often to wait on a Veo operation.

    Delay before poll n (0-based) is interval * backoff**n, capped at
    max_interval, plus up to `jitter` seconds of random spread. The loop gives
    up with TimeoutError once `timeout` or `max_attempts` would be exceeded.
    """

    interval_seconds: float = 5.0
    backoff: float = 1.5
    max_interval_seconds: float = 30.0
    timeout_seconds: Optional[float] = 600.0
    max_attempts: Optional[int] = None
    jitter_seconds: float = 0.0

    def __post_init__(self):
        if self.interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        if self.backoff < 1:
            raise ValueError("backoff must be >= 1")
        if self.max_interval_seconds < self.interval_seconds:
            raise ValueError("max_interval_seconds must be >= interval_seconds")
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        if self.max_attempts is not None and self.max_attempts < 0:
            raise ValueError("max_attempts must be >= 0")
        if self.jitter_seconds < 0:
            raise ValueError("jitter_seconds must be >= 0")

    @classmethod
    def from_config(cls) -> "PollPolicy":
        return cls(
            interval_seconds=VEO_POLL_INTERVAL_SECONDS,
            backoff=VEO_POLL_BACKOFF,
            max_interval_seconds=VEO_POLL_MAX_INTERVAL_SECONDS,
            timeout_seconds=VEO_MAX_WAIT_SECONDS,
            max_attempts=VEO_MAX_POLL_ATTEMPTS,
            jitter_seconds=VEO_POLL_JITTER_SECONDS,
        )

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait before poll number `attempt`."""
        delay = min(self.interval_seconds * (self.backoff ** attempt), self.max_interval_seconds)
        if self.jitter_seconds:
            delay += random.uniform(0, self.jitter_seconds)
        return delay


def build_video_prompt(subject: str, action: str) -> str:
    """Turn the emoji picker choices into a Veo prompt."""
    return Prompts.VIDEO.format(
        subject=VIDEO_SUBJECTS.get(subject, "a character"),
        action=VIDEO_ACTIONS.get(action, "moving"),
    )


class VideoGenerator:
    """
    Generate short cartoon clips using Veo 3.1.

    One client is injected and reused for submission, polling and download.
    Between polls the loop waits on its cancel event, so setting the event
    wakes it at once. `sleep` and `clock` are injectable so the loop can run
    without real waiting; an injected sleep is followed by a cancel check.
    """

    def __init__(
        self,
        client: genai.Client = None,
        poll_policy: PollPolicy = None,
        sleep: Optional[Callable[[float], None]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize with Gemini/Veo client."""
        self.client = client or get_gemini_client()
        self.model = VEO_MODEL
        self.poll_policy = poll_policy or PollPolicy.from_config()
        self.output_dir = VIDEOS_DIR
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self._sleep = sleep
        self._clock = clock

    # =========================================================================
    # Submit
    # =========================================================================

    def submit(self, request: GenerationRequest):
        """
        Start a Veo operation for the request.

        Image-to-video when the request carries an image, text-to-video otherwise.
        """
        config = types.GenerateVideosConfig(
            number_of_videos=VIDEO_COUNT,
            resolution=VIDEO_RESOLUTION,
            aspect_ratio=request.aspect_ratio,
        )

        if request.is_image_conditioned:
            logger.info(f"[VideoGenerator] Submitting image-to-video ({request.aspect_ratio})")
            return self.client.models.generate_videos(
                model=self.model,
                prompt=request.prompt or Prompts.ANIMATE_IMAGE_DEFAULT,
                image=types.Image(
                    image_bytes=request.image.raw_bytes(),
                    mime_type=request.image.mime_type,
                ),
                config=config,
            )

        logger.info(f"[VideoGenerator] Submitting text-to-video ({request.aspect_ratio})")
        return self.client.models.generate_videos(
            model=self.model,
            prompt=request.prompt,
            config=config,
        )

    # =========================================================================
    # Poll
    # =========================================================================

    def _wait(self, delay: float, cancel_event: threading.Event) -> None:
        if self._sleep is None:
            cancelled = cancel_event.wait(delay)
        else:
            self._sleep(delay)
            cancelled = cancel_event.is_set()
        if cancelled:
            raise VideoCancelledError("Video generation cancelled")

    def poll(self, operation, cancel_event: threading.Event = None):
        """
        Poll until the operation reports done.

        Raises TimeoutError when the policy's deadline or attempt budget runs
        out, VideoCancelledError when `cancel_event` is set. Status errors
        propagate unchanged.
        """
        if cancel_event is None:
            cancel_event = threading.Event()
        policy = self.poll_policy
        start_time = self._clock()
        attempts = 0

        while not operation.done:
            if cancel_event.is_set():
                raise VideoCancelledError("Video generation cancelled")

            if policy.max_attempts is not None and attempts >= policy.max_attempts:
                raise TimeoutError(f"Veo generation still running after {attempts} polls")

            delay = policy.delay_for(attempts)
            elapsed = self._clock() - start_time
            if policy.timeout_seconds is not None and elapsed + delay > policy.timeout_seconds:
                raise TimeoutError(f"Veo generation timed out after {elapsed:.0f}s")

            logger.info(f"[VideoGenerator] Waiting for movie... ({elapsed:.0f}s, next check in {delay:.1f}s)")
            self._wait(delay, cancel_event)
            attempts += 1
            operation = self.client.operations.get(operation)

        logger.info(f"[VideoGenerator] Operation done after {attempts} polls")
        return operation

    # =========================================================================
    # Resolve
    # =========================================================================

    def extract_result(self, operation) -> Optional[types.Video]:
        """
        Pick the first generated video out of a finished operation.

        Returns None when Veo produced nothing and gave no reason.
        """
        error = getattr(operation, "error", None)
        if error:
            raise VideoGenerationError(f"Veo operation failed: {error}")

        response = getattr(operation, "response", None)
        if response is None:
            logger.warning("[VideoGenerator] Veo response is None/empty")
            return None

        videos = getattr(response, "generated_videos", None)
        if videos:
            if len(videos) > 1:
                logger.info(f"[VideoGenerator] {len(videos)} videos returned, using the first")
            return videos[0].video

        reasons = getattr(response, "rai_media_filtered_reasons", None) or []
        filtered = getattr(response, "rai_media_filtered_count", None) or 0
        if filtered or reasons:
            raise VideoBlockedError(reasons)

        logger.warning(f"[VideoGenerator] Veo response has no videos. Response: {response}")
        return None

    def resolve(self, video: types.Video) -> PlayableResource:
        """Download the finished video once and save it as a playable file."""
        data = self.client.files.download(file=video)
        if not data:
            data = getattr(video, "video_bytes", None)
        if not data:
            raise VideoGenerationError("Veo video download returned no bytes")

        video_id = str(uuid.uuid4())[:8]
        video_path = self.output_dir / f"movie_{video_id}.mp4"
        video_path.write_bytes(data)

        logger.info(f"[VideoGenerator] Movie saved: {video_path.name} ({len(data)} bytes)")

        return PlayableResource(
            uri=asset_url(video_path),
            mime_type="video/mp4",
            path=video_path,
        )

    # =========================================================================
    # Full flow
    # =========================================================================

    async def generate_veo_video(
        self,
        prompt: str,
        image: Union[str, MediaPayload, None] = None,
        mime_type: str = "image/jpeg",
        aspect_ratio: str = DEFAULT_VIDEO_ASPECT_RATIO,
        cancel_event: threading.Event = None,
    ) -> Optional[PlayableResource]:
        """
        Generate a movie and return it as a playable resource.

        Args:
            prompt: What should happen in the movie
            image: Optional starting photo, as base64 or a MediaPayload
                (invalid base64 raises DecodeError before anything is sent)
            mime_type: MIME type when `image` is plain base64
            aspect_ratio: "16:9" or "9:16"
            cancel_event: Set it to stop waiting on Veo. Cancelling the awaiting
                task sets it too.

        Returns:
            PlayableResource for the saved .mp4, or None when Veo produced no video
        """
        if isinstance(image, str):
            image = encode_base64(image, mime_type) if image else None

        if not image and not (prompt and prompt.strip()):
            raise ValueError("A prompt is required when no image is given")

        request = GenerationRequest(prompt=prompt, image=image, aspect_ratio=aspect_ratio)

        # The worker threads outlive a cancelled task; this event stops the poll loop
        if cancel_event is None:
            cancel_event = threading.Event()

        try:
            operation = await asyncio.to_thread(self.submit, request)
            logger.info("[VideoGenerator] Veo operation started")

            operation = await asyncio.to_thread(self.poll, operation, cancel_event)
            video = self.extract_result(operation)

        except asyncio.CancelledError:
            logger.info("[VideoGenerator] Request cancelled, stopping the poll loop")
            cancel_event.set()
            raise
        except Exception as e:
            logger.error(f"[VideoGenerator] Veo error: {e}")
            raise

        if video is None:
            logger.error("[VideoGenerator] Veo generation finished without a video")
            return None

        return await asyncio.to_thread(self.resolve, video)
