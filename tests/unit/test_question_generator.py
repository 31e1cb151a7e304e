import pytest
from langchain_core.messages import AIMessage, HumanMessage
from pydantic import ValidationError as PydanticValidationError

from conftest import ScriptedCompletion
from domain.errors import GenerationError
from domain.models import ConversationEntry
from llm_gateway import LlmGatewayError
from question_generator import (
    QuestionRequest,
    build_conversation,
    build_instruction,
    generate_question,
    parse_question,
)


def _request(number=1, total=5, transcript=None):
    return QuestionRequest(
        topic="Learn about vacation preferences",
        transcript=transcript or [],
        question_number=number,
        total_questions=total,
    )


def test_instruction_carries_goal_position_and_pacing():
    opening = build_instruction(_request(1, 5))
    middle = build_instruction(_request(2, 6))
    late = build_instruction(_request(5, 6))
    final = build_instruction(_request(6, 6))
    only = build_instruction(_request(1, 1))

    assert "Learn about vacation preferences" in opening
    assert "question 1 of 5" in opening
    assert "opening question" in opening
    assert "Explore the topic in depth" in middle
    assert "nearing its end" in late
    assert "final question" in final
    assert "only question" in only


def test_first_question_conversation_is_a_single_prompt():
    messages = build_conversation(_request(1, 4))

    assert len(messages) == 1
    assert isinstance(messages[0], HumanMessage)
    assert messages[0].content == "Begin the interview with question 1 of 4."


def test_conversation_replays_roles_and_skips_blank_entries():
    transcript = [
        ConversationEntry(role="asker", content="Where do you travel?"),
        ConversationEntry(role="respondent", content=" The coast "),
        ConversationEntry(role="respondent", content="   "),
    ]

    messages = build_conversation(_request(2, 4, transcript))

    assert [type(message) for message in messages] == [AIMessage, HumanMessage, HumanMessage]
    assert messages[1].content == "The coast"
    assert messages[-1].content == "Ask question 2 of 4 now."


def test_request_rejects_number_beyond_budget():
    with pytest.raises(PydanticValidationError):
        _request(4, 3)


@pytest.mark.parametrize(
    "reply, expected",
    [
        ("What draws you to the coast?", "What draws you to the coast?"),
        ("Question 2: What draws you to the coast?", "What draws you to the coast?"),
        ("Q3. How long do you stay?", "How long do you stay?"),
        ('"Who do you travel with?"', "Who do you travel with?"),
        ("```\nWhat season do you prefer?\n```", "What season do you prefer?"),
        ('{"question": "What is your budget?"}', "What is your budget?"),
        ("How do you plan\ntrips?", "How do you plan trips?"),
        ('"Beach" or "city", which feels like "home"', '"Beach" or "city", which feels like "home"'),
    ],
)
def test_parse_question_cleans_reply(reply, expected):
    assert parse_question(reply) == expected


@pytest.mark.parametrize("reply", ["", "   ", "```\n```", '{"answer": "nope"}'])
def test_parse_question_rejects_unusable_reply(reply):
    with pytest.raises(GenerationError):
        parse_question(reply)


def test_generate_question_wraps_gateway_failures():
    completion = ScriptedCompletion(replies=[LlmGatewayError("status 500")])

    with pytest.raises(GenerationError):
        generate_question(_request(), completion=completion)


def test_generate_question_returns_parsed_text():
    completion = ScriptedCompletion(replies=["Question 1: What is your dream destination?"])

    assert generate_question(_request(), completion=completion) == "What is your dream destination?"
    instruction, conversation = completion.calls[0]
    assert "question 1 of 5" in instruction
    assert len(conversation) == 1
