"""Unit tests for SegscribeConfig."""

import pytest
from pydantic import ValidationError

from segscribe.config import DEFAULT_SUMMARY_PROMPT, SegscribeConfig


def write_config(tmp_path, body: str):
    path = tmp_path / "segscribe.yaml"
    path.write_text(body, encoding="utf-8")
    return path


@pytest.mark.unit
class TestSegscribeConfig:

    def test_defaults_without_file(self):
        config = SegscribeConfig()
        params = config.session_parameters()

        assert params.total_duration_seconds == 900
        assert params.segment_duration_seconds == 30
        assert params.input_language == "en-US"
        assert config.get_summary_prompt() == DEFAULT_SUMMARY_PROMPT

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            SegscribeConfig(str(tmp_path / "missing.yaml"))

    def test_empty_file_is_rejected(self, tmp_path):
        with pytest.raises(ValueError):
            SegscribeConfig(str(write_config(tmp_path, "")))

    def test_invalid_yaml_is_rejected(self, tmp_path):
        with pytest.raises(ValueError):
            SegscribeConfig(str(write_config(tmp_path, "session: [unclosed")))

    def test_session_section_and_relative_paths(self, tmp_path):
        path = write_config(tmp_path, (
            "session:\n"
            "  input_language: ja-JP\n"
            "  total_duration_seconds: 120\n"
            "  segment_duration_seconds: 20\n"
            "google_cloud:\n"
            "  credentials_path: creds.json\n"
            "logging:\n"
            "  file_path: logs/app.log\n"
        ))
        config = SegscribeConfig(str(path))

        params = config.session_parameters()

        assert params.input_language == "ja-JP"
        assert params.planned_segment_count == 6
        assert config.get('google_cloud.credentials_path') == str(tmp_path / "creds.json")
        assert config.get('logging.file_path') == str(tmp_path / "logs" / "app.log")

    def test_indivisible_durations_fail_validation(self):
        config = SegscribeConfig()
        config.set('session.total_duration_seconds', 100)
        config.set('session.segment_duration_seconds', 30)

        with pytest.raises(ValidationError):
            config.session_parameters()

    def test_get_and_set_dot_paths(self):
        config = SegscribeConfig()
        config.set('summary.model', 'gpt-4o')

        assert config.get('summary.model') == 'gpt-4o'
        assert config.get('summary.missing', 'fallback') == 'fallback'

    def test_api_key_falls_back_to_environment(self, monkeypatch):
        monkeypatch.setenv('OPENAI_API_KEY', 'env-key')
        config = SegscribeConfig()

        assert config.get_summary_api_key() == 'env-key'
        config.set('summary.api_key', 'file-key')
        assert config.get_summary_api_key() == 'file-key'

    def test_prompt_requires_placeholder(self):
        config = SegscribeConfig()
        config.set('summary.prompt', 'Summarize please')

        with pytest.raises(ValueError):
            config.get_summary_prompt()

    def test_missing_credentials_file(self, tmp_path):
        config = SegscribeConfig()
        config.set('google_cloud.credentials_path', str(tmp_path / "nope.json"))

        with pytest.raises(FileNotFoundError):
            config.get_google_credentials_path()
