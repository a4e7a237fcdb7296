"""Tests for settings loading."""

from almuallim.config import Settings


class TestSettings:
    def test_init_overrides(self, tmp_path):
        settings = Settings(data_dir=tmp_path / "state", admin_upload_delay_seconds=0.5)
        assert settings.admin_upload_delay_seconds == 0.5
        assert settings.state_dir == tmp_path / "state"
        assert settings.state_dir.is_dir()

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("TUTOR_MODEL", "gpt-4o")
        monkeypatch.setenv("PORT", "9001")
        settings = Settings()
        assert settings.tutor_model == "gpt-4o"
        assert settings.port == 9001

    def test_audio_chunk_size(self):
        settings = Settings(audio_sample_rate=16000, audio_chunk_duration_ms=100)
        assert settings.audio_chunk_size == 1600

    def test_api_key_optional(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        settings = Settings(_env_file=None)
        assert settings.openai_api_key is None
