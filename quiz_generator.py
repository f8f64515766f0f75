from __future__ import annotations

import logging
from typing import Any

import requests

from settings import Settings

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an expert author of psychological tests. "
    "You write fun, easy-to-follow personality quizzes on many themes: love, personality, "
    "money and spending, work and career, friendship and relationships, lifestyle."
)


def build_user_prompt(category: str) -> str:
    return (
        f"Category: {category}. Write one psychological test for this category. "
        "Use 5 to 8 questions, each multiple choice with 4 options. "
        "Finish with 3 or 4 result types, each with a short description and a piece of advice."
    )


class GenerationError(RuntimeError):
    """The text-generation API could not produce a test."""


def extract_text_from_response(response_json: dict[str, Any]) -> str:
    output_text = response_json.get("output_text")
    if isinstance(output_text, str) and output_text.strip():
        return output_text.strip()

    texts: list[str] = []
    for item in response_json.get("output", []) or []:
        if not isinstance(item, dict):
            continue
        for content in item.get("content", []) or []:
            text = content.get("text") if isinstance(content, dict) else None
            if isinstance(text, str):
                texts.append(text)
    return "\n".join(texts).strip()


class QuizGenerator:
    def __init__(self, settings: Settings, session: requests.Session | None = None) -> None:
        self._settings = settings
        self._session = session or requests.Session()

    def generate(self, category: str) -> str:
        if not self._settings.openai_api_key:
            raise GenerationError("OPENAI_API_KEY is not set.")

        payload = {
            "model": self._settings.openai_model,
            "input": [
                {"role": "system", "content": [{"type": "input_text", "text": SYSTEM_PROMPT}]},
                {"role": "user", "content": [{"type": "input_text", "text": build_user_prompt(category)}]},
            ],
            "max_output_tokens": self._settings.max_output_tokens,
        }
        try:
            response = self._session.post(
                self._settings.openai_url,
                headers={
                    "Authorization": f"Bearer {self._settings.openai_api_key}",
                    "Content-Type": "application/json",
                },
                json=payload,
                timeout=self._settings.generation_timeout,
            )
        except requests.RequestException as e:
            logger.warning("GENERATE: request failed: %r", e)
            raise GenerationError(f"OpenAI request failed: {e}") from e

        if response.status_code >= 400:
            logger.warning("GENERATE: OpenAI returned %s: %s", response.status_code, response.text[:500])
            raise GenerationError(f"OpenAI request failed ({response.status_code})")

        try:
            body = response.json()
        except ValueError as e:
            raise GenerationError("OpenAI response was not JSON") from e

        text = extract_text_from_response(body if isinstance(body, dict) else {})
        if not text:
            raise GenerationError("Model response did not include text output.")
        logger.info("GENERATE: category=%s generated %d chars", category, len(text))
        return text
