"""
Rizz Codes Configuration

Handles environment configuration for the server and the OpenRouter connector.
"""

import os
from typing import Optional


# Server configuration
HOST = os.getenv("RIZZ_HOST", "127.0.0.1")
PORT = int(os.getenv("RIZZ_PORT", "5000"))
LOG_LEVEL = os.getenv("RIZZ_LOG_LEVEL", "INFO")

# OpenRouter endpoint
OPENROUTER_BASE_URL = os.getenv("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1")

# Descriptive headers OpenRouter uses to attribute traffic
OPENROUTER_REFERER = os.getenv("OPENROUTER_REFERER", "http://localhost:5000")
OPENROUTER_TITLE = os.getenv("OPENROUTER_TITLE", "Rizz Codes")

# Request timeout in seconds (LLM completions can be slow)
OPENROUTER_TIMEOUT = float(os.getenv("OPENROUTER_TIMEOUT", "120"))

# Default model for a fresh connector config
DEFAULT_MODEL = "anthropic/claude-3.5-sonnet"

# Name of the variable holding the fallback API key
API_KEY_ENV_VAR = "OPENROUTER_API_KEY"


def get_env_api_key() -> Optional[str]:
    """
    Read the fallback OpenRouter API key from the environment.

    Read on every call rather than at import so a reloaded environment is
    picked up the next time the key is needed.

    Returns:
        The key, or None when unset or empty
    """
    return os.getenv(API_KEY_ENV_VAR) or None
