"""Pydantic models for config validation.

Schema validation for ``Config.config_data``.  The CLI calls
``Config.validated()`` at startup and works from the typed
``DayleafConfig``; dict-based access through ``Config.get`` keeps working.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, field_validator, model_validator


class PathsConfig(BaseModel):
    """File-system paths used by the application."""

    data_dir: Path
    log_dir: Path | None = None

    @field_validator("data_dir", "log_dir", mode="before")
    @classmethod
    def _expand_user(cls, v: Any) -> Any:
        if isinstance(v, str):
            return Path(v).expanduser()
        if isinstance(v, Path):
            return v.expanduser()
        return v


class StorageConfig(BaseModel):
    """Which diary backend to use and where it keeps entries."""

    backend: Literal["local", "remote"] = "local"
    key: str = "dayleaf-entries"
    user_id: str = ""
    collection: str = "users/{user_id}/diaryEntries"

    @model_validator(mode="after")
    def _remote_needs_user(self) -> StorageConfig:
        if self.backend == "remote" and not self.user_id:
            raise ValueError("storage.user_id is required when storage.backend is 'remote'")
        return self


class LLMConfig(BaseModel):
    """Writing-prompt model settings."""

    model_config = ConfigDict(extra="allow")

    model: str = ""
    fallback_model: str = ""
    temperature: float = 0.7
    timeout: int = 60


class PromptConfig(BaseModel):
    context_entries: int = 5


class LoggingConfig(BaseModel):
    level: str = "WARNING"


class DayleafConfig(BaseModel):
    """Root configuration model.

    Uses ``extra="allow"`` so deployments can add sections without
    touching this schema.
    """

    model_config = ConfigDict(extra="allow")

    paths: PathsConfig = PathsConfig(data_dir=Path("~/.dayleaf"))
    storage: StorageConfig = StorageConfig()
    llm: LLMConfig = LLMConfig()
    prompt: PromptConfig = PromptConfig()
    logging: LoggingConfig = LoggingConfig()
