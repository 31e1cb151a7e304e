from __future__ import annotations  # Completion service capability used by the generators

from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

from langchain_core.messages import BaseMessage
from langchain_core.prompts import ChatPromptTemplate, MessagesPlaceholder

from config import LlmRoute

from .llm_gateway import HttpClient, runnable as llm_runnable


class CompletionService(Protocol):  # Produce text given an instruction and a conversation
    def complete(self, instruction: str, conversation: Sequence[BaseMessage]) -> str:
        """Return the generated reply; raise ``LlmGatewayError`` on failure."""
        ...


class GatewayCompletionService:  # Completion service backed by an HTTP chat route
    def __init__(self, route: LlmRoute, *, client: Optional[HttpClient] = None) -> None:
        self._route = route
        self._prompt = ChatPromptTemplate.from_messages(
            [
                ("system", "{instructions}"),
                MessagesPlaceholder("history"),
            ]
        )
        self._chain = self._prompt | llm_runnable(route, client=client)

    @property
    def route(self) -> LlmRoute:
        return self._route

    def complete(self, instruction: str, conversation: Sequence[BaseMessage]) -> str:
        return self._chain.invoke({"instructions": instruction, "history": list(conversation)})


@dataclass(frozen=True)
class CompletionSet:  # Completion services bound to one owner's configuration
    questions: CompletionService
    summaries: CompletionService


__all__ = ["CompletionService", "CompletionSet", "GatewayCompletionService"]
