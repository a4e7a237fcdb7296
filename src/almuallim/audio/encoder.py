"""Encode captured float32 audio as a base64 WAV payload."""

import base64
import io
import wave

import numpy as np


def float_to_pcm16(audio: np.ndarray) -> np.ndarray:
    """Convert float32 audio in [-1.0, 1.0] to int16 samples, clipping overshoot."""
    return (np.clip(audio, -1.0, 1.0) * 32767).astype(np.int16)


def wav_bytes(audio: np.ndarray, sample_rate: int = 16000, channels: int = 1) -> bytes:
    """Wrap float32 audio in a 16-bit PCM WAV container.

    Args:
        audio: Float32 audio array in range [-1.0, 1.0].
        sample_rate: Sample rate in Hz.
        channels: Number of interleaved channels.

    Returns:
        Complete WAV file contents.
    """
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(2)  # 16-bit
        wf.setframerate(sample_rate)
        wf.writeframes(float_to_pcm16(audio).tobytes())
    return buffer.getvalue()


def wav_to_base64(audio: np.ndarray, sample_rate: int = 16000, channels: int = 1) -> str:
    """Encode float32 audio as a base64 WAV string for the recitation analyzer."""
    return base64.b64encode(wav_bytes(audio, sample_rate, channels)).decode("ascii")
