"""
Pydantic model for application configuration.
Provides robust validation for all settings.
"""

import os
import re
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

DEFAULT_DEST = "~/Pictures/backgrounds/aerials"
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
)

_LANG_REGEX = re.compile(r"^[A-Za-z]{2,3}([_-][A-Za-z0-9]+)*$")


def default_streams() -> int:
    """Number of concurrent streams, scaled to the available CPUs."""
    n = os.cpu_count() or 1
    if n > 6:
        return 8
    if n > 4:
        return 6
    return 4


class GrabConfig(BaseModel):
    """A validated configuration model for the application."""

    # Resources
    macos_major: int = 15
    macos_minor: int = 0
    lang: str = "en"

    # Download Settings
    streams: int = Field(default_factory=default_streams)
    dest: str = DEFAULT_DEST
    m3u: str = ""

    # HTTP
    user_agent: str = DEFAULT_USER_AGENT
    cache_ttl_days: int = 30
    no_cache: bool = False

    # Internal fields not loaded from INI file
    config_path: str = Field("", repr=False)

    class Config:
        """Pydantic model configuration."""

        validate_assignment = True
        str_strip_whitespace = True

    @field_validator("macos_major", "macos_minor")
    @classmethod
    def validate_version(cls, v: int) -> int:
        if v < 0:
            raise ValueError("macOS version numbers cannot be negative.")
        return v

    @field_validator("streams")
    @classmethod
    def validate_streams(cls, v: int) -> int:
        """Ensures a reasonable number of concurrent streams."""
        if v < 1 or v > 32:
            raise ValueError("Streams must be between 1 and 32.")
        return v

    @field_validator("lang")
    @classmethod
    def validate_lang(cls, v: str) -> str:
        if not _LANG_REGEX.match(v):
            raise ValueError(f"Invalid language code: {v!r}")
        return v

    @field_validator("dest")
    @classmethod
    def validate_dest(cls, v: str) -> str:
        if not v:
            raise ValueError("Destination directory cannot be empty.")
        return v

    @field_validator("m3u")
    @classmethod
    def validate_m3u(cls, v: str) -> str:
        """The playlist is always written directly inside the destination."""
        if v and (v in (".", "..") or "/" in v or "\\" in v):
            raise ValueError(f"Invalid m3u file name {v!r}.")
        return v

    @field_validator("cache_ttl_days")
    @classmethod
    def validate_ttl(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Cache TTL cannot be negative.")
        return v

    @property
    def base_dir(self) -> Path:
        """The destination directory with a leading tilde expanded."""
        return Path(self.dest).expanduser()

    @classmethod
    def get_ini_keys(cls) -> set[str]:
        """Returns a set of all keys that are expected in the INI file."""
        internal_fields = {"config_path"}
        return {key for key in cls.model_fields if key not in internal_fields}
