import asyncio
import json
from types import SimpleNamespace

import pytest
from openai import OpenAIError

from lawhelp.core.config import AIConfig
from lawhelp.core.constants import DEFAULT_CATEGORY, DEFAULT_CONFIDENCE, FALLBACK_ANSWER
from lawhelp.core.exceptions import AIServiceError
from lawhelp.services.ai_service import AILegalService, parse_legal_response


class FakeCompletions:
    """Replays canned completion contents, raising any exception instances."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.requests = []

    async def create(self, **kwargs):
        self.requests.append(kwargs)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=outcome))])


def make_service(*outcomes, retries=1):
    completions = FakeCompletions(*outcomes)
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    settings = AIConfig(openai_api_key="sk-test", ai_max_retries=retries)
    return AILegalService(settings=settings, client=client), completions


def test_parse_fills_defaults():
    result = parse_legal_response(json.dumps({"answer": "You may appeal within 10 days."}))

    assert result.answer == "You may appeal within 10 days."
    assert result.category == DEFAULT_CATEGORY
    assert result.confidence == DEFAULT_CONFIDENCE
    assert result.references == []
    assert "legal advice" in result.disclaimer


def test_parse_clamps_confidence_and_wraps_references():
    result = parse_legal_response(json.dumps({"answer": "a", "confidence": 7, "references": "Penal Code s. 74"}))

    assert result.confidence == 1.0
    assert result.references == ["Penal Code s. 74"]


@pytest.mark.parametrize("content", ["not json", "[1, 2]"])
def test_parse_rejects_bad_payloads(content):
    with pytest.raises(AIServiceError):
        parse_legal_response(content)


def test_process_legal_query_sends_prompt_and_parses_answer():
    answer = {
        "answer": "Customary marriages must be registered at the civil status centre.",
        "category": "Family Law",
        "confidence": 0.85,
        "references": ["Ordinance No. 81-02"],
        "disclaimer": "General information only.",
    }
    service, completions = make_service(json.dumps(answer))

    result = asyncio.run(service.process_legal_query("How do I register my marriage?", "User: hi", language="fr"))

    assert result.to_dict() == answer
    request = completions.requests[0]
    assert request["response_format"] == {"type": "json_object"}
    assert request["messages"][0]["role"] == "system"
    prompt = request["messages"][1]["content"]
    assert "How do I register my marriage?" in prompt
    assert "User: hi" in prompt
    assert "French" in prompt


def test_process_legal_query_falls_back_on_api_error():
    service, _ = make_service(OpenAIError("rate limited"))

    result = asyncio.run(service.process_legal_query("Question"))

    assert result.answer == FALLBACK_ANSWER
    assert result.category == "System Error"
    assert result.confidence == 0.0


def test_process_legal_query_falls_back_on_invalid_json():
    service, _ = make_service("Sorry, I cannot answer that.")

    assert asyncio.run(service.process_legal_query("Question")).category == "System Error"


def test_missing_api_key_falls_back():
    service = AILegalService(settings=AIConfig(openai_api_key=None, ai_max_retries=1))

    assert asyncio.run(service.process_legal_query("Question")).answer == FALLBACK_ANSWER


@pytest.mark.parametrize(
    "reply, expected",
    [("Criminal Law", "Criminal Law"), ("employment law.", "Employment Law"), ("Maritime Law", DEFAULT_CATEGORY)],
)
def test_categorize_query(reply, expected):
    service, _ = make_service(reply)

    assert asyncio.run(service.categorize_query("My employer has not paid me")) == expected


def test_categorize_query_error():
    service, _ = make_service(OpenAIError("down"))

    assert asyncio.run(service.categorize_query("Anything")) == DEFAULT_CATEGORY
