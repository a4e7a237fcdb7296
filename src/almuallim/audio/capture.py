"""Microphone recording for recitation practice using sounddevice."""

import numpy as np
import sounddevice as sd
import structlog

from almuallim.audio.encoder import wav_to_base64

logger = structlog.get_logger()


class RecitationRecorder:
    """Records one microphone take and returns it as a base64 WAV payload.

    Args:
        sample_rate: Audio sample rate in Hz.
        channels: Number of audio channels.
        chunk_size: Number of samples per callback block.
        device: Input device index (None for default).
    """

    def __init__(
        self,
        sample_rate: int = 16000,
        channels: int = 1,
        chunk_size: int = 1600,
        device: int | None = None,
    ):
        self.sample_rate = sample_rate
        self.channels = channels
        self.chunk_size = chunk_size
        self.device = device
        self._chunks: list[np.ndarray] = []
        self._stream: sd.InputStream | None = None
        self._running = False

    @property
    def is_recording(self) -> bool:
        return self._running

    def _audio_callback(
        self,
        indata: np.ndarray,
        frames: int,
        time_info: object,
        status: sd.CallbackFlags,
    ) -> None:
        """Sounddevice callback - buffers the block for the current take."""
        if status:
            logger.warning("recitation_capture_status", status=str(status))
        if self._running:
            self._chunks.append(indata.copy().flatten())

    def start(self) -> None:
        """Start a new take, discarding any previous audio."""
        if self._running:
            return
        self._chunks = []
        self._running = True
        self._stream = sd.InputStream(
            samplerate=self.sample_rate,
            channels=self.channels,
            dtype="float32",
            blocksize=self.chunk_size,
            device=self.device,
            callback=self._audio_callback,
        )
        self._stream.start()
        logger.info("recitation_capture_started", sample_rate=self.sample_rate, device=self.device)

    def stop(self) -> str:
        """Stop the take and return the recorded audio as base64 WAV ("" if nothing was captured)."""
        self._running = False
        if self._stream:
            self._stream.stop()
            self._stream.close()
            self._stream = None
        chunks, self._chunks = self._chunks, []
        if not chunks:
            logger.info("recitation_capture_stopped", samples=0)
            return ""
        audio = np.concatenate(chunks)
        logger.info("recitation_capture_stopped", samples=len(audio))
        return wav_to_base64(audio, self.sample_rate, self.channels)
