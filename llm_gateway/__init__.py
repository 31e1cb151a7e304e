from __future__ import annotations  # Re-export llm_gateway public API

from .completion import CompletionService, CompletionSet, GatewayCompletionService
from .llm_gateway import HttpClient, HttpResponse, LlmGatewayError, complete, runnable, strip_code_fences

__all__ = [
    "CompletionService",
    "CompletionSet",
    "GatewayCompletionService",
    "HttpClient",
    "HttpResponse",
    "LlmGatewayError",
    "complete",
    "runnable",
    "strip_code_fences",
]
