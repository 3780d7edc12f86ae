"""
Narration Skill - Gemini TTS reads every screen out loud.

Narration is best-effort: a child must never get stuck because a voice line
failed. Every error is logged and swallowed, and nothing is returned to wait on
when the line is fired in the background.
"""

import asyncio
import logging
import uuid
import wave
from pathlib import Path
from typing import Optional

from google import genai
from google.genai import types

from config import AUDIO_DIR, DEFAULT_VOICE, TTS_MODEL, get_gemini_client
from models.media import PlayableResource, asset_url

logger = logging.getLogger(__name__)

# Audio format constants
SAMPLE_RATE = 24000
CHANNELS = 1
SAMPLE_WIDTH = 2  # 16-bit

# Voices offered to the UI
VOICES = {
    "Puck": "upbeat",
    "Kore": "firm",
    "Fenrir": "excitable",
    "Charon": "informative",
    "Zephyr": "bright",
}


def _write_wav(filename: Path, pcm_data: bytes) -> None:
    """Write PCM data to a WAV file."""
    with wave.open(str(filename), "wb") as wf:
        wf.setnchannels(CHANNELS)
        wf.setsampwidth(SAMPLE_WIDTH)
        wf.setframerate(SAMPLE_RATE)
        wf.writeframes(pcm_data)


def _calculate_duration(pcm_data: bytes) -> float:
    """Calculate audio duration from PCM data."""
    return len(pcm_data) / (SAMPLE_RATE * CHANNELS * SAMPLE_WIDTH)


class Narrator:
    """
    Speak short lines with a prebuilt Gemini voice.

    speak() awaits the audio file; speak_in_background() fires and forgets.
    """

    def __init__(self, client: genai.Client = None):
        """Initialize with Gemini client."""
        self.client = client or get_gemini_client()
        self.model = TTS_MODEL
        self.output_dir = AUDIO_DIR
        self.output_dir.mkdir(parents=True, exist_ok=True)

        # Strong refs so background tasks are not garbage collected mid-flight
        self._pending: set[asyncio.Task] = set()

    def _select_voice(self, voice_name: str = None) -> str:
        if voice_name in VOICES:
            return voice_name
        if voice_name:
            logger.warning(f"[TTS] Unknown voice {voice_name!r}, using {DEFAULT_VOICE}")
        return DEFAULT_VOICE

    async def _synthesize(self, text: str, voice: str) -> Optional[PlayableResource]:
        def call_tts():
            return self.client.models.generate_content(
                model=self.model,
                contents=text,
                config=types.GenerateContentConfig(
                    response_modalities=["AUDIO"],
                    speech_config=types.SpeechConfig(
                        voice_config=types.VoiceConfig(
                            prebuilt_voice_config=types.PrebuiltVoiceConfig(
                                voice_name=voice,
                            )
                        )
                    ),
                ),
            )

        response = await asyncio.to_thread(call_tts)

        # Extract audio data
        audio_data = None
        if response.candidates and response.candidates[0].content:
            for part in response.candidates[0].content.parts or []:
                if part.inline_data and part.inline_data.data:
                    audio_data = part.inline_data.data
                    break

        if not audio_data:
            logger.warning("[TTS] No audio in response")
            return None

        audio_path = self.output_dir / f"say_{str(uuid.uuid4())[:8]}.wav"
        _write_wav(audio_path, audio_data)

        logger.info(f"[TTS] Saved: {audio_path.name} ({_calculate_duration(audio_data):.2f}s, {voice})")
        return PlayableResource(uri=asset_url(audio_path), mime_type="audio/wav", path=audio_path)

    async def speak(self, text: str, voice_name: str = DEFAULT_VOICE) -> Optional[PlayableResource]:
        """
        Synthesize `text` to a WAV file.

        Returns the saved clip, or None if anything went wrong. Never raises.
        The caller owns the file and release()s it once it has been played.
        """
        if not text or not text.strip():
            return None

        voice = self._select_voice(voice_name)
        logger.info(f"[TTS] Speaking with {voice}: {text[:50]}")

        try:
            return await self._synthesize(text, voice)
        except Exception as e:
            # Silent fail: narration must never block the child
            logger.error(f"[TTS] Error: {e}")
            return None

    def speak_in_background(self, text: str, voice_name: str = DEFAULT_VOICE) -> asyncio.Task:
        """Schedule speak() on the running loop and return immediately."""
        task = asyncio.get_running_loop().create_task(self.speak(text, voice_name))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def drain(self) -> None:
        """Wait for all background narration to finish (used on shutdown)."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
