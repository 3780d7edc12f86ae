"""
Test: Veo Video Generation (submit -> poll -> resolve)

Verifies that:
1. Completion is never reported before the operation says done
2. done=false twice then done=true means two sleeps and one download
3. A submission failure propagates with no poll attempts
4. The poll loop honours its deadline, attempt budget and cancel event,
   and stops when the awaiting task is cancelled
5. Filtered responses surface as VideoBlockedError, empty ones as None

Run: python -m pytest tests/test_generate_video.py
"""

import asyncio
import base64
import sys
import threading
from pathlib import Path

import pytest

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from models.media import GenerationRequest, MediaPayload
from skills.media_codec.media_codec import DecodeError
from skills.generate_video.generate_video import (
    PollPolicy,
    VideoBlockedError,
    VideoCancelledError,
    VideoGenerationError,
    VideoGenerator,
    build_video_prompt,
)
from fake_gemini import (
    FakeClock,
    FakeFiles,
    FakeGeminiClient,
    FakeModels,
    FakeOperations,
    video_operation,
)

VIDEO_URI = "https://generativelanguage.googleapis.com/v1beta/files/abc:download?alt=media"
FIXED_POLICY = PollPolicy(interval_seconds=5, backoff=1, max_interval_seconds=5, timeout_seconds=None)


def _generator(client, tmp_path, policy=FIXED_POLICY, clock=None):
    clock = clock or FakeClock()
    generator = VideoGenerator(client=client, poll_policy=policy, sleep=clock.sleep, clock=clock)
    generator.output_dir = tmp_path
    return generator, clock


def _client(statuses, first=None, **kwargs):
    return FakeGeminiClient(
        models=FakeModels(video_operation=first or video_operation(done=False), **kwargs),
        operations=FakeOperations(statuses=statuses),
        files=FakeFiles(payload=b"mp4-bytes"),
    )


def test_two_pending_polls_then_done(tmp_path):
    """Submit (pending) -> poll (pending) -> poll (done): two sleeps, one fetch."""
    client = _client([
        video_operation(done=False),
        video_operation(done=True, uri=VIDEO_URI),
    ])
    generator, clock = _generator(client, tmp_path)

    result = asyncio.run(generator.generate_veo_video("A 3D cartoon cat dancing"))

    assert clock.sleeps == [5, 5]
    assert client.operations.calls == 2
    assert len(client.files.downloads) == 1
    assert client.files.downloads[0].uri == VIDEO_URI

    assert result is not None
    assert result.mime_type == "video/mp4"
    assert result.path.parent == tmp_path
    assert result.read_bytes() == b"mp4-bytes"

    result.release()
    assert result.is_released


def test_poll_never_completes_early(tmp_path):
    statuses = [video_operation(done=False) for _ in range(4)] + [video_operation(done=True, uri=VIDEO_URI)]
    client = _client(statuses)
    generator, clock = _generator(client, tmp_path)

    operation = generator.poll(video_operation(done=False))

    assert operation.done
    assert client.operations.calls == 5
    assert len(clock.sleeps) == 5


def test_already_done_operation_is_not_polled(tmp_path):
    client = _client([], first=video_operation(done=True, uri=VIDEO_URI))
    generator, clock = _generator(client, tmp_path)

    result = asyncio.run(generator.generate_veo_video("A happy puppy playing soccer"))

    assert clock.sleeps == []
    assert client.operations.calls == 0
    assert result is not None


def test_submission_failure_propagates_without_polling(tmp_path):
    client = _client([], videos_error=RuntimeError("403 PERMISSION_DENIED"))
    generator, clock = _generator(client, tmp_path)

    with pytest.raises(RuntimeError, match="PERMISSION_DENIED"):
        asyncio.run(generator.generate_veo_video("A friendly robot"))

    assert client.operations.calls == 0
    assert clock.sleeps == []
    assert client.files.downloads == []


def test_status_failure_propagates(tmp_path):
    client = FakeGeminiClient(
        models=FakeModels(video_operation=video_operation(done=False)),
        operations=FakeOperations(error=ConnectionError("reset by peer")),
    )
    generator, _ = _generator(client, tmp_path)

    with pytest.raises(ConnectionError):
        asyncio.run(generator.generate_veo_video("A magical unicorn"))
    assert client.files.downloads == []


def test_download_failure_is_not_retried(tmp_path):
    client = FakeGeminiClient(
        models=FakeModels(video_operation=video_operation(done=True, uri=VIDEO_URI)),
        files=FakeFiles(error=IOError("download failed")),
    )
    generator, _ = _generator(client, tmp_path)

    with pytest.raises(IOError):
        asyncio.run(generator.generate_veo_video("A funny alien"))
    assert len(client.files.downloads) == 1


def test_done_without_video_returns_none(tmp_path):
    client = _client([], first=video_operation(done=True))
    generator, _ = _generator(client, tmp_path)

    assert asyncio.run(generator.generate_veo_video("A green dinosaur")) is None
    assert client.files.downloads == []


def test_filtered_video_is_blocked(tmp_path):
    client = _client([], first=video_operation(done=True, filtered_reasons=["Unsafe content"]))
    generator, _ = _generator(client, tmp_path)

    with pytest.raises(VideoBlockedError) as exc:
        asyncio.run(generator.generate_veo_video("Something scary"))
    assert exc.value.reasons == ["Unsafe content"]
    assert client.files.downloads == []


def test_operation_error_raises(tmp_path):
    client = _client([], first=video_operation(done=True, error={"code": 13, "message": "internal"}))
    generator, _ = _generator(client, tmp_path)

    with pytest.raises(VideoGenerationError, match="internal"):
        asyncio.run(generator.generate_veo_video("A happy puppy"))


def test_timeout_bounds_the_loop(tmp_path):
    policy = PollPolicy(interval_seconds=5, backoff=1, max_interval_seconds=5, timeout_seconds=12)
    client = _client([video_operation(done=False) for _ in range(10)])
    generator, clock = _generator(client, tmp_path, policy=policy)

    with pytest.raises(TimeoutError):
        generator.poll(video_operation(done=False))
    assert clock.sleeps == [5, 5]


def test_max_attempts_bounds_the_loop(tmp_path):
    policy = PollPolicy(interval_seconds=5, timeout_seconds=None, max_attempts=3)
    client = _client([video_operation(done=False) for _ in range(10)])
    generator, _ = _generator(client, tmp_path, policy=policy)

    with pytest.raises(TimeoutError):
        generator.poll(video_operation(done=False))
    assert client.operations.calls == 3


def test_cancel_event_stops_polling(tmp_path):
    client = _client([video_operation(done=False) for _ in range(10)])
    generator, _ = _generator(client, tmp_path)
    cancel = threading.Event()
    cancel.set()

    with pytest.raises(VideoCancelledError):
        generator.poll(video_operation(done=False), cancel_event=cancel)
    assert client.operations.calls == 0


def test_cancelled_task_stops_the_poll_thread(tmp_path):
    """Cancelling the awaiting task must also stop the worker thread's polling."""
    client = _client([video_operation(done=False) for _ in range(1000)])
    policy = PollPolicy(interval_seconds=0.01, backoff=1, max_interval_seconds=0.01, timeout_seconds=None)
    generator = VideoGenerator(client=client, poll_policy=policy)
    generator.output_dir = tmp_path

    async def cancel_mid_poll():
        task = asyncio.create_task(generator.generate_veo_video("A sleepy koala"))
        await asyncio.sleep(0.1)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        calls_at_cancel = client.operations.calls
        await asyncio.sleep(0.2)
        return calls_at_cancel

    calls_at_cancel = asyncio.run(cancel_mid_poll())

    assert calls_at_cancel > 0
    # At most the poll already in flight when the task was cancelled
    assert client.operations.calls <= calls_at_cancel + 1
    assert client.files.downloads == []


def test_cancel_event_interrupts_a_wait(tmp_path):
    client = _client([video_operation(done=False) for _ in range(10)])
    policy = PollPolicy(interval_seconds=60, backoff=1, max_interval_seconds=60, timeout_seconds=None)
    generator = VideoGenerator(client=client, poll_policy=policy)
    cancel = threading.Event()
    threading.Timer(0.05, cancel.set).start()

    with pytest.raises(VideoCancelledError):
        generator.poll(video_operation(done=False), cancel_event=cancel)
    assert client.operations.calls == 0


def test_backoff_grows_and_caps():

    policy = PollPolicy(interval_seconds=5, backoff=2, max_interval_seconds=30)

    assert [policy.delay_for(n) for n in range(5)] == [5, 10, 20, 30, 30]


def test_jitter_stays_within_bounds():
    policy = PollPolicy(interval_seconds=5, backoff=1, max_interval_seconds=5, jitter_seconds=1)

    for n in range(20):
        assert 5 <= policy.delay_for(n) <= 6


@pytest.mark.parametrize("kwargs", [
    {"interval_seconds": 0},
    {"backoff": 0.5},
    {"interval_seconds": 10, "max_interval_seconds": 5},
    {"timeout_seconds": 0},
    {"max_attempts": -1},
    {"jitter_seconds": -1},
])
def test_invalid_policies_are_rejected(kwargs):
    with pytest.raises(ValueError):
        PollPolicy(**kwargs)


def test_submit_dispatches_on_image(tmp_path):
    client = _client([])
    generator, _ = _generator(client, tmp_path)
    photo = MediaPayload(mime_type="image/png", data=base64.b64encode(b"png").decode("ascii"))

    generator.submit(GenerationRequest(prompt="", image=photo, aspect_ratio="9:16"))
    generator.submit(GenerationRequest(prompt="A cat in space"))

    image_call, text_call = client.models.video_calls
    assert image_call["image"].image_bytes == b"png"
    assert image_call["image"].mime_type == "image/png"
    assert image_call["prompt"] == "Animate this image"
    assert image_call["config"].aspect_ratio == "9:16"
    assert image_call["config"].number_of_videos == 1
    assert image_call["config"].resolution == "720p"

    assert "image" not in text_call
    assert text_call["prompt"] == "A cat in space"
    assert text_call["config"].aspect_ratio == "16:9"


def test_base64_image_argument_is_wrapped(tmp_path):
    client = _client([], first=video_operation(done=True, uri=VIDEO_URI))
    generator, _ = _generator(client, tmp_path)
    data = base64.b64encode(b"jpeg").decode("ascii")

    asyncio.run(generator.generate_veo_video("Dance!", image=data, mime_type="image/jpeg"))

    assert client.models.video_calls[0]["image"].image_bytes == b"jpeg"


def test_invalid_base64_image_is_rejected_before_submit(tmp_path):
    client = _client([])
    generator, _ = _generator(client, tmp_path)

    with pytest.raises(DecodeError):
        asyncio.run(generator.generate_veo_video("Dance!", image="@@@not-base64@@@"))
    assert client.models.video_calls == []


def test_prompt_required_without_image(tmp_path):

    client = _client([])
    generator, _ = _generator(client, tmp_path)

    with pytest.raises(ValueError):
        asyncio.run(generator.generate_veo_video("   "))
    assert client.models.video_calls == []


def test_aspect_ratio_is_validated():
    with pytest.raises(ValueError):
        GenerationRequest(prompt="A cat", aspect_ratio="4:3")


def test_build_video_prompt():
    assert build_video_prompt("🐱", "💃") == (
        "A 3D cartoon style video of a cute fluffy cat dancing happily. Vibrant colors, high quality."
    )
    assert build_video_prompt("?", None) == (
        "A 3D cartoon style video of a character moving. Vibrant colors, high quality."
    )


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
