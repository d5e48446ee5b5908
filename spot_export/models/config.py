"""
Pydantic model for application configuration.
Provides robust validation for all settings.
"""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DEFAULT_PACING_SECONDS = 10.0


class DeliveryMode(str, Enum):
    """How decrypted audio reaches the filesystem."""

    DIRECT = "direct"
    HELPER = "helper"


class ExportConfig(BaseModel):
    """A validated configuration model for the application."""

    model_config = ConfigDict(validate_assignment=True, str_strip_whitespace=True)

    # Authentication
    username: str | None = None
    access_token: str | None = Field(default=None, repr=False)
    credentials_file: Path | None = None

    # Output
    output_dir: Path = Path("tracks")
    helper_path: str | None = None
    group_by_container: bool = False
    fetch_cover: bool = True
    verify_ogg: bool = False

    # Behaviour
    pacing_seconds: float = DEFAULT_PACING_SECONDS
    json_log_dir: Path | None = None

    # Internal fields not loaded from INI file
    source_links: list[str] = Field(default_factory=list, repr=False)

    @property
    def delivery_mode(self) -> DeliveryMode:
        """Helper mode is enabled by configuring a helper executable."""
        return DeliveryMode.HELPER if self.helper_path else DeliveryMode.DIRECT

    @property
    def requires_cover(self) -> bool:
        return self.delivery_mode is DeliveryMode.HELPER

    @field_validator("username", "access_token", "helper_path", mode="before")
    @classmethod
    def empty_to_none(cls, v):
        """Treats blank INI values as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("pacing_seconds")
    @classmethod
    def validate_pacing(cls, v: float) -> float:
        """Ensures a sane delay between items."""
        if v < 0 or v > 600:
            raise ValueError("Pacing must be between 0 and 600 seconds.")
        return v

    @field_validator("output_dir")
    @classmethod
    def validate_output_dir(cls, v: Path) -> Path:
        if not str(v).strip():
            raise ValueError("Output directory cannot be empty.")
        return v.expanduser()

    @model_validator(mode="after")
    def validate_option_conflicts(self) -> "ExportConfig":
        """Checks for conflicting options."""
        if self.verify_ogg and self.helper_path:
            raise ValueError(
                "--verify only applies to direct mode; the helper owns its output."
            )
        return self

    @classmethod
    def get_ini_keys(cls) -> set[str]:
        """Returns a set of all keys that are expected in the INI file."""
        internal_fields = {"source_links", "access_token"}
        return {key for key in cls.model_fields if key not in internal_fields}
