"""
Text-generation provider.

One client wrapper used by stage-2 classification, enrichment extraction and
qualitative scoring. Output parsing helpers live here too, since every call
site must treat malformed output as "no result".
"""

import json
import logging
import re
from typing import Optional, Any

from anthropic import Anthropic
from openai import OpenAI

from ..config.settings import LLM_CONFIG
from ..exceptions import ProviderUnavailableError, UnparseableResponseError

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:[\w-]+)?\s*([\s\S]*?)```")


class TextGenerator:
    """
    Thin wrapper over the OpenRouter/OpenAI or Anthropic SDKs.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        provider: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
    ):
        """
        Initialize LLM client.

        Args:
            api_key: API key for the provider (falls back to LLM_CONFIG)
            provider: "openrouter", "openai", or "anthropic"
            model: Model identifier in the provider's format
            base_url: OpenRouter base URL
        """
        self.api_key = api_key or LLM_CONFIG.get("api_key")
        self.provider = provider or LLM_CONFIG.get("provider", "anthropic")
        self.model = model or LLM_CONFIG.get("model")
        self.base_url = base_url or LLM_CONFIG.get("base_url")
        self.site_url = LLM_CONFIG.get("site_url", "http://localhost:8000")
        self.app_name = LLM_CONFIG.get("app_name", "Prospect Engine")
        self.client = None

        self._initialize_client()

    def _initialize_client(self):
        """Initialize the LLM client based on provider"""
        if not self.api_key:
            return

        if self.provider == "openrouter":
            self.client = OpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                default_headers={
                    "HTTP-Referer": self.site_url,
                    "X-Title": self.app_name,
                },
            )
        elif self.provider == "openai":
            self.client = OpenAI(api_key=self.api_key)
        elif self.provider == "anthropic":
            self.client = Anthropic(api_key=self.api_key)
        else:
            raise ValueError(f"Unknown provider: {self.provider}")

    def is_configured(self) -> bool:
        return self.client is not None

    def generate(
        self,
        prompt: str,
        system: Optional[str] = None,
        max_output_tokens: int = 500,
        temperature: float = 0.0,
    ) -> str:
        """
        Generate text for a prompt.

        Raises:
            ProviderUnavailableError: unconfigured client, SDK failure or empty output
        """
        if not self.client:
            raise ProviderUnavailableError(self.provider, "API key not configured")

        try:
            text = self._call_llm(prompt, system, max_output_tokens, temperature)
        except Exception as e:
            raise ProviderUnavailableError(self.provider, str(e)[:200]) from e

        if not text or not text.strip():
            raise ProviderUnavailableError(self.provider, "empty response")
        return text

    def _call_llm(
        self,
        prompt: str,
        system: Optional[str],
        max_output_tokens: int,
        temperature: float,
    ) -> str:
        """Call the LLM API"""
        if self.provider in ["openrouter", "openai"]:
            # Both OpenRouter and OpenAI use the same SDK interface
            messages = []
            if system:
                messages.append({"role": "system", "content": system})
            messages.append({"role": "user", "content": prompt})

            response = self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_output_tokens,
            )
            return response.choices[0].message.content or ""

        kwargs = {}
        if system:
            kwargs["system"] = system
        response = self.client.messages.create(
            model=self.model,
            max_tokens=max_output_tokens,
            temperature=temperature,
            messages=[{"role": "user", "content": prompt}],
            **kwargs,
        )
        return "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )


# =============================================================================
# Response parsing
# =============================================================================

def strip_code_fence(text: str) -> str:
    """Return the body of the first fenced block, or the trimmed text"""
    clean = (text or "").strip()
    match = _FENCE_RE.search(clean)
    if match:
        return match.group(1).strip()
    return clean


def parse_json_response(text: str, expected: type = dict) -> Any:
    """
    Parse model output as JSON of the expected top-level type.

    Raises:
        UnparseableResponseError: invalid JSON or wrong shape
    """
    clean = strip_code_fence(text)
    try:
        data = json.loads(clean)
    except (json.JSONDecodeError, TypeError) as e:
        raise UnparseableResponseError(f"Invalid JSON: {e}", raw=clean) from e

    if not isinstance(data, expected):
        raise UnparseableResponseError(
            f"Expected {expected.__name__}, got {type(data).__name__}", raw=clean
        )
    return data


def create_text_generator(api_key: Optional[str] = None) -> TextGenerator:
    """Build the text generator from LLM_CONFIG"""
    return TextGenerator(api_key=api_key)
