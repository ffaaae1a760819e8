"""
LLM Client: single-shot completions via LiteLLM.

Used by the writing-prompt generator. Routes to any provider litellm
supports and retries once on a fallback model when the primary one is
rate limited or unreachable.
"""

from typing import Any

from loguru import logger

from .config import DEFAULT_PROMPT_MAX_TOKENS, get_default_model, get_model_max_tokens, infer_provider


def _require_litellm():
    """Lazy import with clear error message."""
    try:
        import litellm

        return litellm
    except ImportError:
        raise ImportError("Install LLM support with: pip install dayleaf[llm]") from None


class LLMClient:
    """
    Multi-provider LLM client backed by LiteLLM.

    Model names follow litellm conventions:
      - OpenAI:    ``"gpt-4o-mini"``
      - Anthropic: ``"anthropic/claude-haiku-4"``
      - Gemini:    ``"gemini/gemini-2.5-flash"``
      - Local:     ``"ollama/llama3.2"``
    """

    def __init__(
        self,
        model: str | None = None,
        provider: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        timeout: int = 60,
        num_retries: int = 2,
        fallback_model: str | None = None,
    ):
        if model:
            self.model = model
            self.provider = provider or infer_provider(model)
        else:
            self.provider = provider or "openai"
            self.model = get_default_model(self.provider)

        self.temperature = temperature
        self.timeout = timeout
        self.num_retries = num_retries
        self.fallback_model = fallback_model or None

        model_limit = get_model_max_tokens(self.model)
        requested = max_tokens or DEFAULT_PROMPT_MAX_TOKENS
        if requested > model_limit:
            logger.warning(f"max_tokens ({requested}) exceeds model limit ({model_limit}). Capping.")
        self.max_tokens = min(requested, model_limit)

        logger.debug(f"LLMClient: model={self.model}  max_tokens={self.max_tokens}")

    async def acompletion(self, messages: list[dict[str, Any]]) -> Any:
        """Async completion with fallback on retryable errors.

        Returns:
            The raw litellm response object.
        """
        litellm = _require_litellm()
        kwargs = self._build_completion_kwargs(messages)

        try:
            return await litellm.acompletion(**kwargs)
        except (litellm.RateLimitError, litellm.APIError, litellm.APIConnectionError) as e:
            if not self.fallback_model:
                raise
            logger.warning(
                f"Primary model {self.model} failed ({type(e).__name__}), falling back to {self.fallback_model}"
            )
            kwargs["model"] = self.fallback_model
            kwargs["max_tokens"] = min(kwargs["max_tokens"], get_model_max_tokens(self.fallback_model))
            return await litellm.acompletion(**kwargs)

    async def acomplete_text(self, prompt: str, system_prompt: str | None = None) -> str:
        """Send one user message and return the response text ("" if none)."""
        messages: list[dict[str, Any]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        response = await self.acompletion(messages)
        return safe_get_content(response).strip()

    def _build_completion_kwargs(self, messages: list[dict[str, Any]]) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "timeout": self.timeout,
            "num_retries": self.num_retries,
        }


def safe_get_content(response: Any, default: str = "") -> str:
    """Safely extract text content from an LLM response.

    Guards against empty ``choices`` lists or missing ``message``/``content``
    attributes that can occur with malformed provider responses. Content
    block lists are flattened to their text parts.
    """
    choices = getattr(response, "choices", None)
    if not choices:
        logger.warning("LLM response has no choices; returning default")
        return default
    message = getattr(choices[0], "message", None)
    if message is None:
        logger.warning("LLM response choice has no message; returning default")
        return default
    content = getattr(message, "content", None)
    if content is None:
        return default
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type", "text") == "text":
                parts.append(part.get("text", ""))
        return "".join(parts)
    return str(content)
