"""
LLM client and model defaults: powered by LiteLLM.

Requires ``dayleaf[llm]`` (i.e. ``litellm``).
"""

from .client import LLMClient, safe_get_content
from .config import PROVIDER_ENV_MAP, get_default_model, get_model_max_tokens, infer_provider

__all__ = [
    "PROVIDER_ENV_MAP",
    "LLMClient",
    "get_default_model",
    "get_model_max_tokens",
    "infer_provider",
    "safe_get_content",
]
