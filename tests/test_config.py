from pathlib import Path

import pytest

from feedback_insights.config import OpenAIConfig, load_settings
from feedback_insights.exceptions import ConfigurationError


def test_defaults_apply_without_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("FEEDBACK_INSIGHTS_CONFIG", raising=False)

    settings = load_settings()

    assert settings.llm.model_name == "gpt-4o-mini"
    assert settings.llm.temperature == pytest.approx(0.3)
    assert settings.llm.max_tokens == 100
    assert settings.embeddings.dimensions == 768
    assert settings.index.chunk_size == 10
    assert settings.analytics.cache_key == "analytics:latest"
    assert settings.analytics.ttl_seconds == 300


def test_yaml_overrides_and_alias(tmp_path: Path) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text(
        "llm:\n  provider: none\n  model: small-model\nembeddings:\n  provider: hashing\n  dimensions: 64\n",
        encoding="utf-8",
    )

    settings = load_settings(path)

    assert settings.llm.provider == "none"
    assert settings.llm.model_name == "small-model"
    assert settings.embeddings.provider == "hashing"
    assert settings.embeddings.dimensions == 64
    assert settings.pipeline.batch_size == 10


def test_env_var_selects_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "custom.yaml"
    path.write_text("pipeline:\n  batch_size: 3\n", encoding="utf-8")
    monkeypatch.setenv("FEEDBACK_INSIGHTS_CONFIG", str(path))

    assert load_settings().pipeline.batch_size == 3


@pytest.mark.parametrize(
    "body",
    [
        "index:\n  default_top_k: 80\n  max_top_k: 50\n",
        "llm:\n  temperature: 3.5\n",
        "embeddings:\n  dimensions: 0\n",
        "analytics:\n  cache_key: '  '\n",
    ],
)
def test_invalid_settings_raise(tmp_path: Path, body: str) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text(body, encoding="utf-8")

    with pytest.raises(ConfigurationError):
        load_settings(path)


def test_explicit_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        load_settings(tmp_path / "nope.yaml")


def test_openai_config_requires_key() -> None:
    with pytest.raises(ConfigurationError):
        OpenAIConfig(api_key="").validate()
    OpenAIConfig(api_key="sk-test").validate()
