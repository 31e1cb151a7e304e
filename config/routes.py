"""LLM route configuration loaded from the application config file."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

from pydantic import BaseModel, Field


class LlmRoute(BaseModel):
    """LLM endpoint configuration."""

    name: str
    base_url: str
    endpoint: str
    model: str
    timeout_s: float = Field(ge=0.1)
    api_key_env: str | None = None
    api_key: str | None = Field(default=None, repr=False)
    response_format: str | None = None
    extra_headers: Dict[str, str] = Field(default_factory=dict)
    options: Dict[str, Any] = Field(default_factory=dict)
    sequential: bool = False


class AppConfig(BaseModel):
    """Application configuration root."""

    llm_routes: Dict[str, LlmRoute]
    registry: Dict[str, str]


def load_config(path: Path) -> AppConfig:
    """Load configuration from disk."""

    data = path.read_text(encoding="utf-8")
    return AppConfig.model_validate_json(data)


def resolve_route(cfg: AppConfig, target: str) -> LlmRoute:
    """Return the route registered for ``target``.

    Raises:
        KeyError: If the target or the route it points to is not configured.
    """

    if target not in cfg.registry:
        raise KeyError(f"Registry entry missing for '{target}'")
    route_id = cfg.registry[target]
    if route_id not in cfg.llm_routes:
        raise KeyError(f"Route '{route_id}' missing for '{target}'")
    return cfg.llm_routes[route_id]
