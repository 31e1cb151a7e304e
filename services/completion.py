"""Owner-scoped resolution of the completion services used by a session."""
from __future__ import annotations

from typing import Callable, Dict, Optional

from config import AppConfig, LlmRoute, resolve_route
from domain.models import OwnerConfig
from llm_gateway import CompletionService, CompletionSet, GatewayCompletionService
from question_generator import QUESTION_ROUTE_KEY
from storage.owners import OwnerConfigStore
from summary_generator import SUMMARY_ROUTE_KEY

CompletionFactory = Callable[[LlmRoute], CompletionService]


class RouteCompletionResolver:
    """Build completion services from the app routes plus the owner's overrides."""

    def __init__(
        self,
        app_config: AppConfig,
        owners: OwnerConfigStore,
        *,
        factory: CompletionFactory = GatewayCompletionService,
    ) -> None:
        self._config = app_config
        self._owners = owners
        self._factory = factory

    def resolve(self, owner_id: str) -> CompletionSet:
        owner = self._owners.get(owner_id)
        return CompletionSet(
            questions=self._factory(self.route_for(QUESTION_ROUTE_KEY, owner)),
            summaries=self._factory(self.route_for(SUMMARY_ROUTE_KEY, owner)),
        )

    def route_for(self, target: str, owner: Optional[OwnerConfig]) -> LlmRoute:
        """Return the configured route for ``target`` with the owner's key and model applied."""

        route = resolve_route(self._config, target)
        if owner is None:
            return route
        updates: Dict[str, str] = {}
        if owner.api_key:
            updates["api_key"] = owner.api_key
        if owner.model:
            updates["model"] = owner.model
        return route.model_copy(update=updates) if updates else route


__all__ = ["CompletionFactory", "RouteCompletionResolver"]
