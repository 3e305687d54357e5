# orchestrator/core/services/llm/registry.py
"""Registry des capacités et limites de chaque provider LLM."""

from typing import Any, Dict

PROVIDERS: Dict[str, Dict[str, Any]] = {
    "openai": {
        "name": "OpenAI",
        "temperature": {"min": 0.0, "max": 2.0, "default": 0.7},
        "max_tokens": {"max": 16000, "default": 2000},
        "supports_tools": True,
    },
    "anthropic": {
        "name": "Anthropic",
        "temperature": {"min": 0.0, "max": 1.0, "default": 0.7},
        "max_tokens": {"max": 8192, "default": 4000},
        "supports_tools": True,
    },
    "gemini": {
        "name": "Google Gemini",
        "temperature": {"min": 0.0, "max": 2.0, "default": 0.7},
        "max_tokens": {"max": 8192, "default": 2000},
        "supports_tools": False,
    },
}


def get_provider_config(provider: str) -> Dict[str, Any]:
    """Récupère la configuration d'un provider."""
    if provider not in PROVIDERS:
        raise ValueError(f"Unknown provider: {provider}")
    return PROVIDERS[provider]


def clamp_temperature(provider: str, value: float) -> float:
    limits = get_provider_config(provider)["temperature"]
    return max(limits["min"], min(limits["max"], value))


def clamp_max_tokens(provider: str, value: int) -> int:
    limits = get_provider_config(provider)["max_tokens"]
    return min(limits["max"], value or limits["default"])
