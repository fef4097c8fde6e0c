"""Runtime configuration for the trace service.

Values come from ``OT_TRACE_*`` environment variables, e.g.
``OT_TRACE_DATABASE_URL`` or ``OT_TRACE_STRICT_DIAGRAMS=1``.
"""

from __future__ import annotations

import os
from functools import lru_cache

from pydantic import BaseModel, Field, field_validator

ENV_PREFIX = "OT_TRACE_"


class Settings(BaseModel):
    database_url: str = Field("sqlite:///./ot_trace.db", description="SQLAlchemy database URL")
    log_level: str = Field("INFO", description="Root log level")
    strict_diagrams: bool = Field(
        False, description="Raise instead of warn when a conflict diagram is inconsistent"
    )
    api_prefix: str = Field("/api/v1", description="Prefix for the REST routers")

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper()

    @classmethod
    def from_env(cls) -> "Settings":
        values = {}
        for name in cls.model_fields:
            raw = os.environ.get(f"{ENV_PREFIX}{name.upper()}")
            if raw is not None:
                values[name] = raw
        return cls(**values)


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
