"""Configuration for the last-commenter field renderer.

One ``LastCommenterConfig`` is built per extension instance. The pipeline
variant selects which of the three rendering behaviours is live:

- ``email_only``: timestamp and author of the latest comment, nothing else.
- ``admin_match``: same, plus an ``admin: yes/no`` line and a highlighted
  background when the author is not one of the row's two administrators.
- ``editor_fallback``: when a row has no comments, show the identity of the
  user who last modified the row instead of an empty cell.

Settings can also be read from ``LASTCOMMENTER_*`` environment variables via
``LastCommenterConfig.from_env``.
"""

import os
from enum import Enum
from typing import Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator

ENV_PREFIX = "LASTCOMMENTER_"


class PipelineVariant(str, Enum):
    """Mutually exclusive rendering behaviours of the resolution pipeline."""

    EMAIL_ONLY = "email_only"
    ADMIN_MATCH = "admin_match"
    EDITOR_FALLBACK = "editor_fallback"


class CommenterCacheConfig(BaseModel):
    """Configuration for the per-row payload cache.

    Attributes:
        max_size: Maximum number of rows kept (LRU eviction). None disables the bound.
        ttl_seconds: Entries older than this are treated as absent. None disables expiry.
    """

    model_config = {"frozen": True}

    max_size: Optional[int] = Field(500, gt=0, description="Maximum cached rows (None = unbounded)")
    ttl_seconds: Optional[float] = Field(None, gt=0, description="Entry lifetime in seconds (None = no expiry)")


class LastCommenterConfig(BaseModel):
    """Settings for one field-renderer instance."""

    model_config = {"frozen": True}

    variant: PipelineVariant = PipelineVariant.ADMIN_MATCH
    admin_field_1: str = Field("admin_1", min_length=1, description="Person field holding administrator 1")
    admin_field_2: str = Field("admin_2", min_length=1, description="Person field holding administrator 2")
    editor_field: str = Field("Editor", min_length=1, description="Person field holding the last modifier")
    identifier_field: str = Field("ID", min_length=1, description="Row metadata name of the row identifier")
    url_parameter: str = Field("ID", min_length=1, description="Query parameter carrying the row identifier")
    display_timezone: Optional[str] = Field(None, description="IANA zone for timestamps (None = process local)")
    datetime_format: str = Field("%m/%d/%Y, %I:%M %p", description="strftime pattern for comment timestamps")
    highlight_color: str = Field("#fff4ce", description="Background for comments not written by an administrator")
    single_flight: bool = Field(True, description="Share one in-flight resolution between renders of a row")
    verbose_diagnostics: bool = Field(False, description="Log every pipeline step at INFO")
    cache: CommenterCacheConfig = Field(default_factory=CommenterCacheConfig)

    @field_validator("display_timezone")
    @classmethod
    def timezone_must_exist(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {value}") from e
        return value

    @property
    def compares_administrators(self) -> bool:
        return self.variant is PipelineVariant.ADMIN_MATCH

    @property
    def falls_back_to_editor(self) -> bool:
        return self.variant is PipelineVariant.EDITOR_FALLBACK

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "LastCommenterConfig":
        """Build a config from ``LASTCOMMENTER_*`` environment variables.

        Field names map to upper-cased variable names, e.g. ``variant`` is read
        from ``LASTCOMMENTER_VARIANT``. Cache settings use
        ``LASTCOMMENTER_CACHE_MAX_SIZE`` and ``LASTCOMMENTER_CACHE_TTL_SECONDS``;
        the literal ``none`` disables either bound.

        Raises:
            pydantic.ValidationError: If a variable holds an invalid value.
        """
        env = os.environ if environ is None else environ
        values: dict[str, object] = {}
        for name in cls.model_fields:
            if name == "cache":
                continue
            raw = env.get(f"{ENV_PREFIX}{name.upper()}")
            if raw is not None:
                values[name] = raw
        cache_values: dict[str, object] = {}
        for name in CommenterCacheConfig.model_fields:
            raw = env.get(f"{ENV_PREFIX}CACHE_{name.upper()}")
            if raw is not None:
                cache_values[name] = None if raw.strip().lower() == "none" else raw
        if cache_values:
            values["cache"] = CommenterCacheConfig(**cache_values)
        return cls(**values)
