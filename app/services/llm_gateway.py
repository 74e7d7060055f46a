"""OpenAI chat-completions gateway."""

import json
import re
from typing import List, Optional
from openai import AsyncOpenAI, OpenAIError

from app.core.logging import get_logger
from app.shared.exceptions import UpstreamProviderException

logger = get_logger("llm")


def extract_json_from_text(text: str) -> Optional[dict]:
    """
    Extract a JSON object from text that may contain markdown or other content.
    Uses multiple strategies to find valid JSON.
    """
    if not text:
        return None

    # Strategy 1: Try parsing the text directly
    try:
        parsed = json.loads(text.strip())
        return parsed if isinstance(parsed, dict) else None
    except json.JSONDecodeError:
        pass

    # Strategy 2: Remove markdown code blocks
    patterns = [
        r'```json\s*([\s\S]*?)\s*```',  # ```json ... ```
        r'```\s*([\s\S]*?)\s*```',       # ``` ... ```
    ]

    for pattern in patterns:
        match = re.search(pattern, text, re.IGNORECASE)
        if match:
            try:
                parsed = json.loads(match.group(1).strip())
                if isinstance(parsed, dict):
                    return parsed
            except json.JSONDecodeError:
                continue

    # Strategy 3: Find the outermost curly braces
    start_idx = text.find('{')
    if start_idx != -1:
        depth = 0
        end_idx = start_idx
        for i, char in enumerate(text[start_idx:], start_idx):
            if char == '{':
                depth += 1
            elif char == '}':
                depth -= 1
                if depth == 0:
                    end_idx = i
                    break

        if end_idx > start_idx:
            try:
                return json.loads(text[start_idx:end_idx + 1])
            except json.JSONDecodeError:
                pass

    return None


class LLMGateway:
    """Thin wrapper around the OpenAI chat API. One attempt per call."""

    def __init__(self, api_key: Optional[str], model: str = "gpt-4", extraction_model: str = "gpt-3.5-turbo"):
        self.model = model
        self.extraction_model = extraction_model
        self.client = AsyncOpenAI(api_key=api_key, max_retries=0) if api_key else None

    async def complete(
        self,
        messages: List[dict],
        max_tokens: int = 800,
        temperature: float = 0.3,
        model: Optional[str] = None,
    ) -> str:
        """Send a message list and return the generated text."""
        if self.client is None:
            raise UpstreamProviderException("Language model provider is not configured")

        try:
            response = await self.client.chat.completions.create(
                model=model or self.model,
                messages=messages,
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except OpenAIError as e:
            logger.error(f"OpenAI request failed: {e}")
            raise UpstreamProviderException("Language model request failed")

        content = response.choices[0].message.content if response.choices else None
        if not content:
            logger.error("OpenAI returned an empty completion")
            raise UpstreamProviderException("Language model returned no content")

        logger.debug(f"OpenAI raw response: {content[:500]}...")
        return content
