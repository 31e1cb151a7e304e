import pytest

from conftest import SUMMARY_REPLY, ScriptedCompletion
from domain.errors import GenerationError
from domain.models import ConversationEntry
from llm_gateway import LlmGatewayError
from summary_generator import (
    SummaryRequest,
    build_conversation,
    build_instruction,
    format_transcript,
    generate_summary,
    parse_summary,
)


def _request(transcript=None):
    return SummaryRequest(topic="Learn about vacation preferences", transcript=transcript or [])


def test_instruction_requests_three_part_json():
    instruction = build_instruction(_request())

    assert "Learn about vacation preferences" in instruction
    assert '"keyInsights"' in instruction
    assert '"structuredData"' in instruction
    assert instruction.endswith("Return only JSON without markdown fences, text, or commentary.")


def test_transcript_is_speaker_labelled():
    transcript = [
        ConversationEntry(role="asker", content="Where do you travel?"),
        ConversationEntry(role="respondent", content="The coast"),
    ]

    assert format_transcript(transcript) == "Interviewer: Where do you travel?\n\nInterviewee: The coast"
    assert format_transcript([]) == "(no exchanges)"
    message = build_conversation(_request(transcript))[0]
    assert message.content.startswith("Interview transcript:\n\nInterviewer: Where do you travel?")


def test_parse_summary_reads_all_parts():
    draft = parse_summary(SUMMARY_REPLY)

    assert draft.summary.startswith("The respondent wants")
    assert draft.key_insights == ["Prefers warm weather", "Travels with family"]
    assert draft.structured_data == {"destination": "beach", "month": "September"}


def test_parse_summary_tolerates_fences_and_prose():
    fenced = "```json\n" + SUMMARY_REPLY + "\n```"
    wrapped = "Here is the analysis:\n" + SUMMARY_REPLY + "\nThanks!"

    assert parse_summary(fenced).structured_data["month"] == "September"
    assert parse_summary(wrapped).key_insights[0] == "Prefers warm weather"


def test_parse_summary_defaults_malformed_parts_individually():
    draft = parse_summary('{"summary": 42, "key_insights": ["  a ", 3, true, null, ""], "structuredData": []}')

    assert draft.summary == ""
    assert draft.key_insights == ["a", "3"]
    assert draft.structured_data == {}


@pytest.mark.parametrize("reply", ["no json here", "[1, 2]", '{"other": 1}', "{broken"])
def test_parse_summary_rejects_unusable_reply(reply):
    with pytest.raises(GenerationError):
        parse_summary(reply)


def test_generate_summary_wraps_gateway_failures():
    completion = ScriptedCompletion(replies=[LlmGatewayError("timeout")])

    with pytest.raises(GenerationError):
        generate_summary(_request(), completion=completion)


def test_generate_summary_sends_transcript():
    completion = ScriptedCompletion(replies=[SUMMARY_REPLY])
    transcript = [ConversationEntry(role="asker", content="Where do you travel?")]

    draft = generate_summary(_request(transcript), completion=completion)

    assert draft.key_insights
    _, conversation = completion.calls[0]
    assert "Interviewer: Where do you travel?" in conversation[0].content
