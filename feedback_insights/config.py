"""Configuration loader for the feedback insights pipeline."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Literal, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, PositiveInt, ValidationError, field_validator, model_validator

from .exceptions import ConfigurationError

load_dotenv()

CONFIG_PATH = Path("config/settings.yaml")
CONFIG_ENV_VAR = "FEEDBACK_INSIGHTS_CONFIG"


class LLMSettings(BaseModel):
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    provider: Literal["openai", "none"] = "openai"
    model_name: str = Field("gpt-4o-mini", alias="model")
    temperature: float = 0.3
    max_tokens: PositiveInt = 100

    @field_validator("temperature")
    @classmethod
    def validate_temperature(cls, value: float) -> float:
        if not 0.0 <= value <= 2.0:
            raise ValueError("temperature must be between 0 and 2")
        return value


class EmbeddingSettings(BaseModel):
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    provider: Literal["openai", "hashing"] = "openai"
    model_name: str = Field("text-embedding-3-small", alias="model")
    dimensions: PositiveInt = 768


class IndexSettings(BaseModel):
    chunk_size: PositiveInt = 10
    default_top_k: PositiveInt = 10
    max_top_k: PositiveInt = 50

    @model_validator(mode="after")
    def validate_top_k(self) -> "IndexSettings":
        if self.default_top_k > self.max_top_k:
            raise ValueError("default_top_k must not exceed max_top_k")
        return self


class PipelineSettings(BaseModel):
    batch_size: PositiveInt = 10
    journal_max_runs: PositiveInt = 50


class StorageSettings(BaseModel):
    feedback_path: Path = Path("data/feedback.json")
    vectors_path: Path = Path("data/vectors.json")
    journal_path: Path = Path("data/journal.json")


class AnalyticsSettings(BaseModel):
    cache_key: str = "analytics:latest"
    ttl_seconds: PositiveInt = 300
    top_themes: PositiveInt = 5
    timeline_days: PositiveInt = 7

    @field_validator("cache_key")
    @classmethod
    def validate_cache_key(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("cache_key must not be empty")
        return value


class Settings(BaseModel):
    llm: LLMSettings = Field(default_factory=LLMSettings)
    embeddings: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    index: IndexSettings = Field(default_factory=IndexSettings)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    analytics: AnalyticsSettings = Field(default_factory=AnalyticsSettings)


@dataclass
class OpenAIConfig:
    """Credentials for the OpenAI backends, read from the environment."""

    api_key: str = field(default_factory=lambda: os.getenv("OPENAI_API_KEY", ""))
    base_url: Optional[str] = field(default_factory=lambda: os.getenv("OPENAI_BASE_URL") or None)

    def validate(self) -> None:
        if not self.api_key:
            raise ConfigurationError("OPENAI_API_KEY must be set")


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigurationError(f"Settings file not found: {path}")
    with path.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


def load_settings(path: Optional[Path] = None) -> Settings:
    """Load settings from YAML without caching.

    An explicit path (argument or ``FEEDBACK_INSIGHTS_CONFIG``) must exist.
    The default ``config/settings.yaml`` is optional; built-in defaults apply
    when it is absent.
    """

    env_path = os.getenv(CONFIG_ENV_VAR)
    target_path = path or (Path(env_path) if env_path else None)
    if target_path is None:
        raw = _load_yaml(CONFIG_PATH) if CONFIG_PATH.exists() else {}
    else:
        raw = _load_yaml(Path(target_path))

    try:
        return Settings.model_validate(raw)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid settings: {exc}") from exc


@lru_cache(maxsize=1)
def get_settings(path: Optional[Path] = None) -> Settings:
    """Load and cache application settings."""

    return load_settings(path)
