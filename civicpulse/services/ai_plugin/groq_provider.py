"""
Groq AI Client - language and vision inference over Groq's
OpenAI-compatible chat completions API.
"""

from civicpulse.services.ai_plugin.base import AIClient
from civicpulse.core.exceptions import UpstreamDegradation
from typing import Dict, List, Optional
import logging

import requests

logger = logging.getLogger(__name__)


class GroqAIClient(AIClient):
    """
    Groq chat completions client.

    Requires GROQ_API_KEY. Each call is a single bounded-timeout HTTP request;
    there is no retry loop, callers fall back on failure.
    """

    TEMPERATURE = 0.3

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = "https://api.groq.com/openai/v1",
        text_model: str = "llama-3.3-70b-versatile",
        vision_model: str = "meta-llama/llama-4-scout-17b-16e-instruct",
        timeout_seconds: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.text_model = text_model
        self.vision_model = vision_model
        self.timeout_seconds = timeout_seconds
        self.session = session or requests.Session()
        self.enabled = bool(api_key and api_key.strip())

        if self.enabled:
            logger.info(f"Groq AI client initialized: text={self.text_model}, vision={self.vision_model}")
        else:
            logger.info("Groq AI client disabled: No API key configured")

    def is_enabled(self) -> bool:
        return self.enabled

    def get_model_info(self) -> Dict[str, str]:
        return {
            "text_model": self.text_model,
            "vision_model": self.vision_model,
        }

    def get_timeout_seconds(self) -> float:
        return self.timeout_seconds

    def infer_text(self, prompt: str, system_prompt: Optional[str] = None, max_tokens: int = 200) -> str:
        messages: List[Dict] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})
        return self._chat_completion(self.text_model, messages, max_tokens)

    def infer_vision(self, image_url: str, prompt: str, max_tokens: int = 300) -> str:
        messages = [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": prompt},
                    {"type": "image_url", "image_url": {"url": image_url}},
                ],
            }
        ]
        return self._chat_completion(self.vision_model, messages, max_tokens)

    def _chat_completion(self, model: str, messages: List[Dict], max_tokens: int) -> str:
        if not self.enabled:
            raise UpstreamDegradation("Groq API key not configured")

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": model,
            "messages": messages,
            "temperature": self.TEMPERATURE,
            "max_tokens": max_tokens,
        }

        try:
            response = self.session.post(
                f"{self.base_url}/chat/completions",
                headers=headers,
                json=payload,
                timeout=self.timeout_seconds,
            )
        except requests.Timeout as e:
            raise UpstreamDegradation(f"Groq API timed out after {self.timeout_seconds}s") from e
        except requests.RequestException as e:
            raise UpstreamDegradation(f"Groq API transport error: {e}") from e

        if response.status_code != 200:
            # 429 here is the upstream quota, not our own rate limit
            raise UpstreamDegradation(f"Groq API returned status {response.status_code}: {response.text[:200]}")

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamDegradation(f"Groq API returned a non-JSON body: {e}") from e

        try:
            text = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise UpstreamDegradation(f"Groq API returned an unexpected body shape: {e!r}") from e

        if not isinstance(text, str) or not text.strip():
            raise UpstreamDegradation("Groq API returned an empty completion")

        logger.debug(f"Groq raw reply ({model}): {text}")
        return text
