"""Gemini-backed helpers that turn free text into questions and write-ups.

The generation backend is any callable ``prompt -> text``. Responses are
parsed defensively: a fenced ``json`` block is preferred, then the first
``{...}`` span, then the whole text. Each field is validated on its own and
replaced by a default when missing or of the wrong type, so callers always
get a complete result.
"""
from __future__ import annotations

import json
import logging
import os
import re
from typing import Any, Callable, Dict, List, Optional, Sequence

from google import genai
from google.genai.errors import ClientError
from pydantic import BaseModel, field_validator

from .datamodels import Question, QuestionDraft, SearchResult, Solution
from .errors import ExtractionError

logger = logging.getLogger("dsa")

DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_TEMPERATURE = 0.3
RAW_PREVIEW_CHARS = 200

JSON_BLOCK_PATTERN = re.compile(r"```json\s*\n([\s\S]*?)\n```")
JSON_OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")

Generator = Callable[[str], str]


class GeminiGenerator:
    """Callable wrapper around the Gemini client; raises ExtractionError on failure."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        temperature: float = DEFAULT_TEMPERATURE,
    ):
        self.api_key = (
            api_key
            or os.getenv("GOOGLE_GENERATIVE_AI_API_KEY")
            or os.getenv("GOOGLE_API_KEY")
            or os.getenv("GEMINI_API_KEY")
        )
        self.model = model or os.getenv("GEMINI_MODEL") or DEFAULT_MODEL
        self.temperature = temperature
        self._client = None

    @property
    def client(self):
        if self._client is None:
            if not self.api_key:
                raise ExtractionError(
                    "Gemini API key missing. Set GOOGLE_GENERATIVE_AI_API_KEY, "
                    "GOOGLE_API_KEY or GEMINI_API_KEY."
                )
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    def _generate_with_fallback(self, prompt: str):
        """Try the configured model; if 404, retry with a '-latest' variant."""
        try:
            return self.client.models.generate_content(
                model=self.model,
                contents=prompt,
                config={"temperature": self.temperature},
            )
        except ClientError as err:
            status = getattr(err, "status_code", None) or getattr(err, "code", None)
            if status == 404 or "NOT_FOUND" in str(err):
                alt_model = (
                    f"{self.model}-latest"
                    if not str(self.model).endswith("-latest")
                    else DEFAULT_MODEL
                )
                return self.client.models.generate_content(
                    model=alt_model,
                    contents=prompt,
                    config={"temperature": self.temperature},
                )
            raise

    def __call__(self, prompt: str) -> str:
        try:
            response = self._generate_with_fallback(prompt)
        except ExtractionError:
            raise
        except Exception as e:
            raise ExtractionError(f"Generation failed: {e}") from e
        text = getattr(response, "text", None) or ""
        if not text.strip():
            raise ExtractionError("Generation returned no text")
        return text


# --- Response parsing ---

def json_candidate(text: str) -> str:
    """Pick the part of a model response most likely to be the JSON payload."""
    block = JSON_BLOCK_PATTERN.search(text)
    if block:
        return block.group(1).strip()
    obj = JSON_OBJECT_PATTERN.search(text)
    if obj:
        return obj.group(0).strip()
    return text.strip()


def parse_payload(text: str) -> Dict[str, Any]:
    """Return the JSON object found in ``text``; raise ExtractionError otherwise."""
    try:
        data = json.loads(json_candidate(text))
    except json.JSONDecodeError as e:
        raise ExtractionError(f"Response is not JSON: {e}") from e
    if not isinstance(data, dict):
        raise ExtractionError("Response JSON is not an object")
    return data


def _string_or_none(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


class DraftPayload(BaseModel):
    name: Optional[str] = None
    platform: Optional[str] = None
    link: Optional[str] = None
    topic: Optional[str] = None
    description: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def strings_only(cls, value: Any) -> Optional[str]:
        return _string_or_none(value)


class SolutionPayload(BaseModel):
    questionLink: Optional[str] = None
    description: Optional[str] = None
    inputOutput: Optional[str] = None
    approach: Optional[str] = None
    cppSolution: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def strings_only(cls, value: Any) -> Optional[str]:
        return _string_or_none(value)


class SearchPayload(BaseModel):
    suggestedQuestion: Optional[str] = None
    explanation: Optional[str] = None
    alternativeMatches: List[str] = []

    @field_validator("suggestedQuestion", "explanation", mode="before")
    @classmethod
    def strings_only(cls, value: Any) -> Optional[str]:
        return _string_or_none(value)

    @field_validator("alternativeMatches", mode="before")
    @classmethod
    def string_list(cls, value: Any) -> List[str]:
        if not isinstance(value, list):
            return []
        return [v for v in value if isinstance(v, str)]


# --- Prompts ---

def build_draft_prompt(user_input: str) -> str:
    return (
        "You are an expert competitive programmer. Analyze the following input and "
        "extract the details of a DSA practice question.\n\n"
        f"Input: {user_input}\n\n"
        "Respond with ONLY a JSON object with exactly these fields:\n"
        '{"name": "Question title", "platform": "LeetCode" or "Codeforces" or "Other", '
        '"link": "Full problem URL, or a placeholder", "topic": "DSA topic, e.g. Binary Search", '
        '"status": "Pending", "pinned": true, "description": "Brief problem description"}\n\n'
        "Rules:\n"
        '- A leetcode.com URL means platform "LeetCode"; a codeforces.com URL means "Codeforces"; '
        'anything else is "Other" unless the text names a platform.\n'
        '- Always set status to "Pending" and pinned to true.\n'
        "- Make the topic specific to the problem type.\n"
        "- If no link is given, use a placeholder link."
    )


def build_solution_prompt(question: Question) -> str:
    return (
        "You are an expert competitive programmer writing a solution guide.\n"
        f"Problem: {question.name}\nPlatform: {question.platform}\nLink: {question.link}\n\n"
        "Respond with ONLY a JSON object with these fields:\n"
        '{"questionLink": "...", "description": "problem statement summary", '
        '"inputOutput": "input/output format with an example", '
        '"approach": "step by step approach with complexity", '
        '"cppSolution": "complete C++ solution"}'
    )


def build_search_prompt(query: str, questions: Sequence[Question]) -> str:
    listing = "\n".join(
        f"{i}. {q.name} (Topic: {q.topic}, Platform: {q.platform})"
        for i, q in enumerate(questions, start=1)
    )
    return (
        "You help users find relevant DSA questions for a search query.\n\n"
        f'Search query: "{query}"\n\nAvailable questions:\n{listing}\n\n'
        "Consider topic, algorithm type, platform and name similarity. Respond with ONLY "
        'a JSON object: {"suggestedQuestion": "exact question name or null", '
        '"explanation": "why it matches", "alternativeMatches": ["other names"]}'
    )


def _preview(text: str) -> str:
    return text[:RAW_PREVIEW_CHARS] + "..."


class Extractor:
    def __init__(self, generate: Generator):
        self.generate = generate

    def _ask(self, prompt: str) -> str:
        try:
            return self.generate(prompt)
        except ExtractionError:
            raise
        except Exception as e:
            raise ExtractionError(f"Generation failed: {e}") from e

    def extract(self, user_input: str) -> QuestionDraft:
        """Draft a question from a URL or description; never raises."""
        try:
            text = self._ask(build_draft_prompt(user_input))
        except ExtractionError as e:
            logger.warning("Draft generation failed: %s", e)
            return QuestionDraft()
        logger.debug("Raw draft response: %s", text[:RAW_PREVIEW_CHARS])

        try:
            payload = DraftPayload.model_validate(parse_payload(text))
        except ExtractionError as e:
            logger.warning("Could not parse draft response: %s", e)
            return QuestionDraft(description=_preview(text))

        default = QuestionDraft()
        return QuestionDraft(
            name=payload.name or default.name,
            platform=payload.platform or default.platform,
            link=payload.link or default.link,
            topic=payload.topic or default.topic,
            description=payload.description or default.description,
        )

    def solution(self, question: Question) -> Solution:
        """Write up a solution for ``question``; falls back to a placeholder."""
        fallback = Solution(
            question_link=question.link,
            description="Unable to fetch solution at this time. Please check your Gemini API configuration.",
            input_output="N/A",
            approach="N/A",
            cpp_solution="// Solution unavailable",
        )
        try:
            payload = SolutionPayload.model_validate(
                parse_payload(self._ask(build_solution_prompt(question)))
            )
        except ExtractionError as e:
            logger.warning("Solution generation failed for %s: %s", question.name, e)
            return fallback
        return Solution(
            question_link=payload.questionLink or question.link,
            description=payload.description or fallback.description,
            input_output=payload.inputOutput or fallback.input_output,
            approach=payload.approach or fallback.approach,
            cpp_solution=payload.cppSolution or fallback.cpp_solution,
        )

    def search(self, query: str, questions: Sequence[Question]) -> SearchResult:
        """Ask the model which question best matches ``query``."""
        if not query.strip() or not questions:
            return SearchResult(None, "Enter a search query to look for questions.")
        try:
            payload = SearchPayload.model_validate(
                parse_payload(self._ask(build_search_prompt(query, questions)))
            )
        except ExtractionError as e:
            logger.warning("Search failed for %r: %s", query, e)
            return SearchResult(None, "Unable to process search query. Please try rephrasing your search.")

        names = {q.name for q in questions}
        suggested = payload.suggestedQuestion if payload.suggestedQuestion in names else None
        return SearchResult(
            suggested_question=suggested,
            explanation=payload.explanation
            or "No questions found matching your search criteria.",
            alternative_matches=[n for n in payload.alternativeMatches if n in names],
        )
