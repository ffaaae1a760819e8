"""
LLM Configuration: model defaults and token limits for prompt generation.

Writing prompts are short, so limits here are deliberately small; the
table only has to cover the providers a diary deployment is likely to use.
"""

# --- Default model names per provider ---

OPENAI_MODEL = "gpt-4o-mini"
ANTHROPIC_MODEL = "anthropic/claude-haiku-4"
GOOGLE_MODEL = "gemini/gemini-2.5-flash"
LOCAL_MODEL = "ollama/llama3.2"

DEFAULT_PROMPT_MAX_TOKENS = 256

# Output token caps, matched by substring so "gpt-4o" covers "gpt-4o-mini".
MODEL_OUTPUT_TOKEN_LIMITS: dict[str, int] = {
    "gpt-4o": 16_384,
    "gpt-4": 4_096,
    "claude-haiku": 4_096,
    "claude-sonnet": 8_192,
    "gemini-2.5": 65_536,
    "gemini-2.0": 8_192,
    "llama": 8_192,
}

PROVIDER_ENV_MAP: dict[str, str] = {
    "anthropic": "ANTHROPIC_API_KEY",
    "openai": "OPENAI_API_KEY",
    "gemini": "GEMINI_API_KEY",
}


def get_default_model(provider: str) -> str:
    """Get the default litellm model string for a provider."""
    model_map = {
        "anthropic": ANTHROPIC_MODEL,
        "openai": OPENAI_MODEL,
        "gemini": GOOGLE_MODEL,
        "local": LOCAL_MODEL,
    }
    return model_map.get(provider, OPENAI_MODEL)


def get_model_max_tokens(model_name: str) -> int:
    """Get the max output tokens for a model using partial string matching."""
    if model_name in MODEL_OUTPUT_TOKEN_LIMITS:
        return MODEL_OUTPUT_TOKEN_LIMITS[model_name]
    for model_key, limit in MODEL_OUTPUT_TOKEN_LIMITS.items():
        if model_key in model_name:
            return limit
    return 4096


def infer_provider(model_name: str) -> str:
    """Infer provider from a litellm model string."""
    if model_name.startswith("anthropic/") or "claude" in model_name:
        return "anthropic"
    if model_name.startswith("gemini/") or "gemini" in model_name:
        return "gemini"
    if model_name.startswith("ollama/"):
        return "local"
    return "openai"
