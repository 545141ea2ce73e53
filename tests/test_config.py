import pytest
from pydantic import ValidationError

from coursera_scraper.exceptions import ConfigurationError
from coursera_scraper.models.config import ScraperConfig
from coursera_scraper.storage.config_manager import ConfigManager


class TestScraperConfig:
    def test_defaults(self):
        config = ScraperConfig(cauth="token", course_id="ml-course")
        assert config.max_workers == 8
        assert config.download_timeout == 300
        assert config.fail_fast is True
        assert config.sanitize_names is True

    def test_token_is_not_in_repr(self):
        assert "token-value" not in repr(
            ScraperConfig(cauth="token-value", course_id="ml-course")
        )

    @pytest.mark.parametrize("course_id", ["a/b", "..", "a\\b"])
    def test_course_id_must_be_a_slug(self, course_id):
        with pytest.raises(ValidationError):
            ScraperConfig(cauth="token", course_id=course_id)

    def test_requires_token_and_course(self):
        with pytest.raises(ValidationError):
            ScraperConfig(course_id="ml-course")
        with pytest.raises(ValidationError):
            ScraperConfig(cauth="token")

    @pytest.mark.parametrize("workers", [0, 33])
    def test_worker_bounds(self, workers):
        with pytest.raises(ValidationError):
            ScraperConfig(cauth="token", course_id="ml-course", max_workers=workers)


class TestConfigManager:
    def test_missing_file_uses_defaults(self, tmp_path):
        manager = ConfigManager(tmp_path / "config.ini")
        config = manager.load_config({"cauth": "token", "course_id": "ml-course"})
        assert config.output_dir == "."
        assert config.config_path == str(tmp_path)

    def test_saved_settings_are_loaded(self, tmp_path):
        path = tmp_path / "nested" / "config.ini"
        ConfigManager(path).save_settings(
            {"cauth": "token", "course_id": "ml-course", "max_workers": 4, "fail_fast": False}
        )

        config = ConfigManager(path).load_config()

        assert config.cauth == "token"
        assert config.max_workers == 4
        assert config.fail_fast is False

    def test_cli_options_override_file(self, tmp_path):
        path = tmp_path / "config.ini"
        ConfigManager(path).save_settings({"cauth": "token", "course_id": "old-course"})

        config = ConfigManager(path).load_config({"course_id": "new-course"})

        assert config.course_id == "new-course"

    def test_dry_run_is_never_saved(self, tmp_path):
        path = tmp_path / "config.ini"
        ConfigManager(path).save_settings({"cauth": "token", "dry_run": True})
        assert "dry_run" not in path.read_text(encoding="utf-8")

    def test_invalid_values_raise_configuration_error(self, tmp_path):
        path = tmp_path / "config.ini"
        path.write_text("[DEFAULT]\nmax_workers = many\n", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            ConfigManager(path).load_config({"cauth": "token", "course_id": "x"})

    def test_validation_failure_raises_configuration_error(self, tmp_path):
        with pytest.raises(ConfigurationError):
            ConfigManager(tmp_path / "config.ini").load_config({"cauth": "token"})
