"""
Pydantic model for application configuration.
Provides robust validation for all settings.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DEFAULT_DOWNLOAD_TIMEOUT = 300.0


class ScraperConfig(BaseModel):
    """A validated configuration model for the application."""

    model_config = ConfigDict(validate_assignment=True, str_strip_whitespace=True)

    # Authentication & target
    cauth: str = Field("", repr=False)
    course_id: str = ""

    # Download Settings
    output_dir: str = "."
    max_workers: int = 8
    download_timeout: float = DEFAULT_DOWNLOAD_TIMEOUT
    sanitize_names: bool = True
    fail_fast: bool = True
    dry_run: bool = False

    # Event log (JSON lines); empty disables it
    log_dir: str = ""

    # Internal fields not loaded from INI file
    config_path: str = Field(".", repr=False)

    @field_validator("max_workers")
    @classmethod
    def validate_workers(cls, v: int) -> int:
        """Ensures a reasonable number of workers."""
        if v < 1 or v > 32:
            raise ValueError("Max workers must be between 1 and 32.")
        return v

    @field_validator("download_timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Download timeout must be a positive number of seconds.")
        return v

    @field_validator("course_id")
    @classmethod
    def validate_course_id(cls, v: str) -> str:
        """The course id names the output root, so it must be a single path segment."""
        if "/" in v or "\\" in v or v in (".", ".."):
            raise ValueError(
                f"Course ID must be a slug such as 'neural-networks-deep-learning', "
                f"got: {v!r}"
            )
        return v

    @model_validator(mode="after")
    def validate_required(self) -> "ScraperConfig":
        """Validates that both the session token and the course are known."""
        if not self.cauth:
            raise ValueError(
                "CAUTH value not configured. Copy it from the 'CAUTH' cookie of "
                "www.coursera.org."
            )
        if not self.course_id:
            raise ValueError("Course ID not configured.")
        return self

    @classmethod
    def get_ini_keys(cls) -> set[str]:
        """Returns a set of all keys that are expected in the INI file."""
        internal_fields = {"config_path", "dry_run"}
        return {key for key in cls.model_fields if key not in internal_fields}
