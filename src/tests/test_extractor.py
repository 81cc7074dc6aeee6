from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from dsa_tui.datamodels import Question, QuestionDraft
from dsa_tui.errors import ExtractionError
from dsa_tui.extractor import Extractor, GeminiGenerator, json_candidate


def extractor_for(text: str) -> Extractor:
    return Extractor(MagicMock(return_value=text))


def test_fenced_json_block():
    draft = extractor_for('Sure! Here is the JSON:\n```json\n{"name":"Two Sum"}\n```').extract("two sum")
    assert draft.name == "Two Sum"
    default = QuestionDraft()
    assert draft.platform == default.platform == "Other"
    assert draft.link == "#"
    assert draft.topic == "General"
    assert draft.status == "Pending"
    assert draft.pinned is True
    assert draft.description == default.description


def test_bare_object_in_prose():
    draft = extractor_for('Result: {"name": "Course Schedule", "topic": "Graph"} hope it helps').extract("x")
    assert draft.name == "Course Schedule"
    assert draft.topic == "Graph"


def test_no_json_uses_truncated_response():
    raw = "I could not find that problem. " * 20
    draft = extractor_for(raw).extract("something")
    assert draft.name == "Generated Question"
    assert draft.platform == "Other"
    assert draft.description == raw[:200] + "..."


def test_wrong_field_types_fall_back_per_field():
    draft = extractor_for('{"name": 42, "platform": "LeetCode", "link": null, "topic": ["DP"]}').extract("x")
    assert draft.name == "Generated Question"
    assert draft.platform == "LeetCode"
    assert draft.link == "#"
    assert draft.topic == "General"


def test_model_cannot_override_status_and_pinned():
    draft = extractor_for('{"name": "A", "status": "Solved", "pinned": false}').extract("x")
    assert draft.status == "Pending"
    assert draft.pinned is True


def test_generator_failure_gives_default_draft():
    draft = Extractor(MagicMock(side_effect=RuntimeError("quota"))).extract("x")
    assert draft == QuestionDraft()


def test_prompt_includes_input():
    generate = MagicMock(return_value="{}")
    Extractor(generate).extract("https://leetcode.com/problems/two-sum/")
    prompt = generate.call_args.args[0]
    assert "https://leetcode.com/problems/two-sum/" in prompt
    assert '"Pending"' in prompt


def test_json_candidate_prefers_fenced_block():
    text = 'x {"a": 1}\n```json\n{"b": 2}\n```'
    assert json_candidate(text) == '{"b": 2}'


def test_solution_parsed():
    question = Question("Two Sum", "LeetCode", "https://leetcode.com/problems/two-sum/")
    solution = extractor_for(
        '```json\n{"description": "Find two numbers", "approach": "Hash map", "cppSolution": "int main(){}"}\n```'
    ).solution(question)
    assert solution.question_link == question.link
    assert solution.description == "Find two numbers"
    assert solution.approach == "Hash map"
    assert solution.input_output == "N/A"


def test_solution_fallback():
    question = Question("Two Sum", link="#")
    solution = Extractor(MagicMock(side_effect=ExtractionError("no key"))).solution(question)
    assert solution.cpp_solution == "// Solution unavailable"
    assert solution.question_link == "#"


def test_search_keeps_only_known_names():
    questions = [Question("Two Sum", topic="Arrays"), Question("Word Ladder", topic="Graph")]
    result = extractor_for(
        '{"suggestedQuestion": "Word Ladder", "explanation": "BFS", "alternativeMatches": ["Nope", "Two Sum", 3]}'
    ).search("bfs", questions)
    assert result.suggested_question == "Word Ladder"
    assert result.explanation == "BFS"
    assert result.alternative_matches == ["Two Sum"]


def test_search_unknown_suggestion():
    result = extractor_for('{"suggestedQuestion": "Made Up"}').search("q", [Question("Two Sum")])
    assert result.suggested_question is None


def test_search_unparsable():
    result = extractor_for("no idea").search("q", [Question("Two Sum")])
    assert result.suggested_question is None
    assert "rephrasing" in result.explanation


def test_gemini_generator_without_key(monkeypatch):
    for var in ("GOOGLE_GENERATIVE_AI_API_KEY", "GOOGLE_API_KEY", "GEMINI_API_KEY"):
        monkeypatch.delenv(var, raising=False)
    with pytest.raises(ExtractionError):
        GeminiGenerator()("prompt")


def test_gemini_generator_returns_text(monkeypatch):
    generator = GeminiGenerator(api_key="test-key", model="gemini-test")
    client = MagicMock()
    client.models.generate_content.return_value = MagicMock(text='{"name": "A"}')
    generator._client = client
    assert generator("prompt") == '{"name": "A"}'
    assert client.models.generate_content.call_args.kwargs["model"] == "gemini-test"


def test_gemini_generator_empty_text():
    generator = GeminiGenerator(api_key="test-key")
    client = MagicMock()
    client.models.generate_content.return_value = MagicMock(text="")
    generator._client = client
    with pytest.raises(ExtractionError):
        generator("prompt")
