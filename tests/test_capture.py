"""Tests for microphone capture with a mocked input stream."""

import base64
import io
import wave
from unittest.mock import MagicMock, patch

import numpy as np
import pytest

try:
    from almuallim.audio.capture import RecitationRecorder
except OSError:  # PortAudio shared library not installed
    pytest.skip("PortAudio is not available", allow_module_level=True)


def _frame_count(payload: str) -> tuple[int, int]:
    with wave.open(io.BytesIO(base64.b64decode(payload)), "rb") as wf:
        return wf.getframerate(), wf.getnframes()


class TestRecitationRecorder:
    def test_records_and_encodes_take(self):
        recorder = RecitationRecorder(sample_rate=16000, chunk_size=160)
        with patch("almuallim.audio.capture.sd.InputStream") as stream_cls:
            stream = MagicMock()
            stream_cls.return_value = stream
            recorder.start()
            assert recorder.is_recording
            stream.start.assert_called_once()

            block = np.full((160, 1), 0.25, dtype=np.float32)
            recorder._audio_callback(block, 160, None, None)
            recorder._audio_callback(block, 160, None, None)
            payload = recorder.stop()

        stream.stop.assert_called_once()
        stream.close.assert_called_once()
        assert not recorder.is_recording
        assert _frame_count(payload) == (16000, 320)

    def test_stop_without_audio(self):
        recorder = RecitationRecorder()
        with patch("almuallim.audio.capture.sd.InputStream"):
            recorder.start()
            assert recorder.stop() == ""

    def test_blocks_after_stop_ignored(self):
        recorder = RecitationRecorder(chunk_size=10)
        with patch("almuallim.audio.capture.sd.InputStream"):
            recorder.start()
            recorder.stop()
        recorder._audio_callback(np.ones((10, 1), dtype=np.float32), 10, None, None)
        assert recorder._chunks == []

    def test_start_discards_previous_take(self):
        recorder = RecitationRecorder(chunk_size=10)
        with patch("almuallim.audio.capture.sd.InputStream"):
            recorder.start()
            recorder._audio_callback(np.ones((10, 1), dtype=np.float32), 10, None, None)
            recorder.stop()
            recorder.start()
            assert recorder.stop() == ""
