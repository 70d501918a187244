from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv


DEFAULT_API_BASE_URL = "http://localhost:8000/api"
DEFAULT_MODEL = "google/gemini-2.0-flash-exp:free"
DEFAULT_LLM_URL = "https://openrouter.ai/api/v1/chat/completions"

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class ConfigError(Exception):
    """Raised when required settings are missing or the YAML file is malformed."""


@dataclass(frozen=True)
class Config:
    raw: dict[str, Any]
    env: Mapping[str, str] = field(default_factory=dict)

    def section(self, name: str) -> dict[str, Any]:
        return dict(self.raw.get(name) or {})

    # --- environment ---

    @property
    def api_base_url(self) -> str:
        return str(self.env.get("API_BASE_URL") or DEFAULT_API_BASE_URL).rstrip("/")

    @property
    def api_key(self) -> str:
        key = str(self.env.get("OPENROUTER_API_KEY") or "").strip()
        if not key:
            raise ConfigError("OPENROUTER_API_KEY is required. Add it to your environment or .env file.")
        return key

    @property
    def model(self) -> str:
        return str(self.env.get("OPENROUTER_MODEL") or DEFAULT_MODEL)

    @property
    def llm_url(self) -> str:
        return str(self.env.get("OPENROUTER_API_URL") or DEFAULT_LLM_URL)

    # --- yaml tunables ---

    @property
    def user_agent(self) -> str:
        return str(self.section("http").get("user_agent") or DEFAULT_USER_AGENT)

    @property
    def timeout_seconds(self) -> float:
        return float(self.section("http").get("timeout_seconds", 10))

    @property
    def max_connections(self) -> int:
        return int(self.section("http").get("max_connections", 10))

    @property
    def search(self) -> dict[str, Any]:
        s = self.section("search")
        return {
            "base_url": str(s.get("base_url", "https://www.google.com/search")),
            "query_suffix": str(s.get("query_suffix", "blog article")),
            "raw_results": int(s.get("raw_results", 10)),
            "references_per_article": int(s.get("references_per_article", 2)),
            "delay_seconds": float(s.get("delay_seconds", 0.0)),
        }

    @property
    def extract(self) -> dict[str, Any]:
        s = self.section("extract")
        return {
            "min_content_chars": int(s.get("min_content_chars", 200)),
            "delay_seconds": float(s.get("delay_seconds", 1.0)),
        }

    @property
    def enhance(self) -> dict[str, Any]:
        s = self.section("enhance")
        return {
            "max_tokens": int(s.get("max_tokens", 4000)),
            "temperature": float(s.get("temperature", 0.7)),
            "reference_chars": int(s.get("reference_chars", 2000)),
            "min_target_chars": int(s.get("min_target_chars", 1000)),
            "length_factor": float(s.get("length_factor", 1.5)),
            "delay_seconds": float(s.get("delay_seconds", 2.0)),
        }

    @property
    def default_limit(self) -> int:
        return int(self.section("pipeline").get("default_limit", 5))

    @property
    def skip_enhanced(self) -> bool:
        return bool(self.section("pipeline").get("skip_enhanced", True))


def load_yaml(path: str | Path) -> dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a mapping at the top of {path}")
    return data


def load_config(path: str | Path | None = None, env: Mapping[str, str] | None = None) -> Config:
    """Load YAML tunables (if the file exists) and snapshot the environment.

    ``.env`` is merged into ``os.environ`` first unless an explicit ``env`` is given.
    """

    raw: dict[str, Any] = {}
    if path is not None and Path(path).exists():
        raw = load_yaml(path)

    if env is None:
        load_dotenv()
        env = dict(os.environ)

    return Config(raw=raw, env=dict(env))
