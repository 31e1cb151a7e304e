from __future__ import annotations  # Chat-completion gateway for interview generators

import json
import logging
import os
import threading
from typing import Any, Callable, Dict, Optional, Protocol, Sequence, Tuple

from langchain_core.messages import BaseMessage
from langchain_core.runnables import RunnableLambda

from config import LlmRoute


logger = logging.getLogger(__name__)  # Module logger setup


_ROUTE_LOCKS: Dict[str, threading.Lock] = {}
_ROUTE_LOCKS_GUARD = threading.Lock()


class HttpClient(Protocol):  # Minimal HTTP client protocol
    def post(self, url: str, *, json: Dict[str, Any], headers: Dict[str, str], timeout: float) -> "HttpResponse": ...


class HttpResponse(Protocol):  # Minimal HTTP response protocol
    @property
    def status_code(self) -> int: ...

    def json(self) -> Any: ...

    @property
    def text(self) -> str: ...


class LlmGatewayError(RuntimeError):  # Base gateway error
    pass


def _lock_for(cfg: LlmRoute) -> threading.Lock:
    key = cfg.name or f"{cfg.base_url}{cfg.endpoint}"
    with _ROUTE_LOCKS_GUARD:
        lock = _ROUTE_LOCKS.get(key)
        if lock is None:
            lock = threading.Lock()
            _ROUTE_LOCKS[key] = lock
    return lock


def complete(
    messages: Sequence[Dict[str, str]],
    *,
    cfg: LlmRoute,
    client: Optional[HttpClient] = None,
) -> str:  # Send one chat completion and return the raw reply text
    def _execute() -> str:
        payload_messages = _normalize_messages(messages)
        preview = _preview(payload_messages)
        if len(preview) > 120:
            preview = preview[:117] + "..."
        payload: Dict[str, Any] = {"model": cfg.model, "messages": payload_messages}
        payload.update(cfg.options)
        if cfg.response_format:
            payload["response_format"] = {"type": cfg.response_format}
        headers = {"Content-Type": "application/json"}
        api_key = cfg.api_key or (os.getenv(cfg.api_key_env) if cfg.api_key_env else None)
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        headers.update(cfg.extra_headers)
        logger.info(
            "LLM request send route=%s model=%s messages=%d preview=%s",
            cfg.name,
            cfg.model,
            len(payload_messages),
            preview,
        )
        try:
            response, close_cb = _post(f"{cfg.base_url}{cfg.endpoint}", payload, headers, cfg.timeout_s, client)
        except Exception as exc:  # noqa: BLE001
            logger.error("LLM transport failure: %s", exc)
            raise LlmGatewayError("LLM transport failed") from exc
        try:
            if response.status_code >= 400:
                logger.error("LLM error status: %s", response.status_code)
                raise LlmGatewayError(f"LLM returned status {response.status_code}")
            try:
                data = response.json()
            except Exception as exc:  # noqa: BLE001
                logger.error("Invalid JSON payload from LLM: %s", exc)
                raise LlmGatewayError("LLM payload was not JSON") from exc
            content = _extract_content(data)
        finally:
            _close_safely(close_cb)
        logger.info("LLM request done route=%s model=%s chars=%d", cfg.name, cfg.model, len(content))
        return content

    if cfg.sequential:
        with _lock_for(cfg):
            return _execute()
    return _execute()


def runnable(route: LlmRoute, *, client: Optional[HttpClient] = None) -> RunnableLambda:  # Provide runnable interface for LangChain pipelines
    def _invoke(payload: Any) -> str:
        return complete(_coerce_messages(payload), cfg=route, client=client)

    return RunnableLambda(_invoke)


def strip_code_fences(content: str) -> str:  # Remove common markdown fences from LLM output
    text = content.strip()
    if text.startswith("```"):
        lines = text.splitlines()
        if lines:
            lines = lines[1:]
            while lines and lines[0].strip() == "":
                lines = lines[1:]
            while lines and lines[-1].strip() == "":
                lines = lines[:-1]
            if lines and lines[-1].strip() == "```":
                lines = lines[:-1]
            text = "\n".join(lines).strip()
    return text


def _post(url: str, payload: Dict[str, Any], headers: Dict[str, str], timeout: float, client: Optional[HttpClient]) -> Tuple[HttpResponse, Optional[Callable[[], None]]]:  # Dispatch HTTP request
    if client is not None:
        return client.post(url, json=payload, headers=headers, timeout=timeout), None
    import httpx

    http_client = httpx.Client(timeout=timeout)
    try:
        response = http_client.post(url, json=payload, headers=headers)
    except BaseException:
        http_client.close()
        raise
    return response, http_client.close


def _close_safely(close_cb: Optional[Callable[[], None]]) -> None:  # Close HTTP client callback when provided
    if close_cb is not None:
        close_cb()


def _normalize_messages(messages: Sequence[Dict[str, str]]) -> list[Dict[str, str]]:  # Ensure message payload shape
    normalized: list[Dict[str, str]] = []
    for item in messages:
        if not isinstance(item, dict):
            raise TypeError("Each chat message must be a dict with role/content")
        role = str(item.get("role", "")).strip()
        content = str(item.get("content", ""))
        if not role:
            raise ValueError("Chat message missing role")
        normalized.append({"role": role, "content": content})
    return normalized


def _preview(messages: Sequence[Dict[str, str]]) -> str:  # Build preview string for logging
    for message in reversed(messages):
        text = message.get("content", "").strip()
        if text:
            return text.splitlines()[0]
    return ""


def _extract_content(data: Any) -> str:  # Extract message content from LLM response
    if isinstance(data, dict):
        choices = data.get("choices")
        if isinstance(choices, list) and choices:
            message = choices[0].get("message") if isinstance(choices[0], dict) else None
            content = message.get("content") if isinstance(message, dict) else None
            if isinstance(content, str):
                return content
        if isinstance(data.get("content"), str):
            return data["content"]
    raise LlmGatewayError("LLM response missing content")


def _coerce_messages(payload: Any) -> Sequence[Dict[str, str]]:  # Convert LangChain payloads into dict messages
    if hasattr(payload, "to_messages"):
        payload = payload.to_messages()
    if isinstance(payload, dict):
        return [payload]
    if isinstance(payload, BaseMessage):
        return [_message_dict(payload)]
    if isinstance(payload, (list, tuple)):
        if all(isinstance(item, dict) for item in payload):
            return list(payload)  # type: ignore[return-value]
        if all(isinstance(item, BaseMessage) for item in payload):
            return [_message_dict(item) for item in payload]
    raise TypeError("Unsupported message payload for LLM runnable")


def _message_dict(message: BaseMessage) -> Dict[str, str]:  # Map LangChain BaseMessage to role/content dict
    role = message.type
    if role == "human":
        role = "user"
    elif role == "ai":
        role = "assistant"
    content = message.content
    if not isinstance(content, str):
        content = json.dumps(content)
    return {"role": role, "content": content}
