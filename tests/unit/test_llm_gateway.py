import pytest
from langchain_core.messages import AIMessage, HumanMessage

from config import LlmRoute
from llm_gateway import GatewayCompletionService, LlmGatewayError, complete, strip_code_fences


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeClient:
    def __init__(self, response=None, error=None):
        self.response = response or FakeResponse(payload={"choices": [{"message": {"content": "Hello?"}}]})
        self.error = error
        self.requests = []

    def post(self, url, *, json, headers, timeout):
        self.requests.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


def _route(**overrides):
    values = dict(
        name="test-chat",
        base_url="https://llm.example",
        endpoint="/v1/chat/completions",
        model="test-model",
        timeout_s=5,
        api_key_env="TEST_LLM_KEY",
        options={"temperature": 0.2},
    )
    values.update(overrides)
    return LlmRoute(**values)


def test_complete_posts_payload_with_env_key(monkeypatch):
    monkeypatch.setenv("TEST_LLM_KEY", "env-secret")
    client = FakeClient()

    reply = complete([{"role": "user", "content": "Hi"}], cfg=_route(response_format="json_object"), client=client)

    assert reply == "Hello?"
    request = client.requests[0]
    assert request["url"] == "https://llm.example/v1/chat/completions"
    assert request["json"]["model"] == "test-model"
    assert request["json"]["temperature"] == 0.2
    assert request["json"]["response_format"] == {"type": "json_object"}
    assert request["headers"]["Authorization"] == "Bearer env-secret"
    assert request["timeout"] == 5


def test_explicit_api_key_wins_over_env(monkeypatch):
    monkeypatch.setenv("TEST_LLM_KEY", "env-secret")
    client = FakeClient()

    complete([{"role": "user", "content": "Hi"}], cfg=_route(api_key="owner-secret"), client=client)

    assert client.requests[0]["headers"]["Authorization"] == "Bearer owner-secret"


@pytest.mark.parametrize(
    "client",
    [
        FakeClient(error=ConnectionError("refused")),
        FakeClient(response=FakeResponse(status_code=503)),
        FakeClient(response=FakeResponse(payload=ValueError("not json"))),
        FakeClient(response=FakeResponse(payload={"choices": []})),
    ],
)
def test_complete_reports_failures_as_gateway_errors(client):
    with pytest.raises(LlmGatewayError):
        complete([{"role": "user", "content": "Hi"}], cfg=_route(), client=client)
    assert len(client.requests) == 1


def test_completion_service_sends_instruction_then_history():
    client = FakeClient()
    service = GatewayCompletionService(_route(), client=client)

    reply = service.complete(
        "Interview about travel",
        [AIMessage(content="Where to?"), HumanMessage(content="Lisbon")],
    )

    assert reply == "Hello?"
    assert service.route.name == "test-chat"
    assert client.requests[0]["json"]["messages"] == [
        {"role": "system", "content": "Interview about travel"},
        {"role": "assistant", "content": "Where to?"},
        {"role": "user", "content": "Lisbon"},
    ]


def test_instruction_braces_are_not_template_variables():
    client = FakeClient()
    service = GatewayCompletionService(_route(), client=client)

    service.complete('Reply as {"summary": "..."}', [HumanMessage(content="Go")])

    assert client.requests[0]["json"]["messages"][0]["content"] == 'Reply as {"summary": "..."}'


def test_strip_code_fences():
    assert strip_code_fences("```json\n{\"a\": 1}\n```") == '{"a": 1}'
    assert strip_code_fences("  plain  ") == "plain"
