"""App configuration — LLM provider, model, generation defaults, paths."""

import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------
ROOT_DIR = Path(__file__).parent
OUTPUT_DIR = ROOT_DIR / os.getenv("OUTPUT_DIR", "outputs")

# ---------------------------------------------------------------------------
# LLM Provider API Keys
#
# Only used as fallbacks by the CLI. The HTTP API takes the key per session.
# ---------------------------------------------------------------------------
GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY", "")
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY", "")

# ---------------------------------------------------------------------------
# Model names (centralized so they're easy to update)
# ---------------------------------------------------------------------------
GOOGLE_FLASH = "gemini-2.5-flash"
OPENAI_MINI = "gpt-4.1-mini"
ANTHROPIC_SONNET = "claude-sonnet-4-5"

DEFAULT_PROVIDER = os.getenv("DEFAULT_PROVIDER", "google")
DEFAULT_MODEL = os.getenv("DEFAULT_MODEL", GOOGLE_FLASH)

PROVIDER_DEFAULT_MODELS: dict[str, str] = {
    "google": GOOGLE_FLASH,
    "openai": OPENAI_MINI,
    "anthropic": ANTHROPIC_SONNET,
}

LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.8"))
LLM_MAX_TOKENS = int(os.getenv("LLM_MAX_TOKENS", "8000"))

# Bulk generation asks Gemini to read the landing page through Google Search.
GOOGLE_SEARCH_GROUNDING = os.getenv("GOOGLE_SEARCH_GROUNDING", "true").lower() in ("1", "true", "yes")

# ---------------------------------------------------------------------------
# Generation defaults (what the form starts with)
# ---------------------------------------------------------------------------
DEFAULT_VARIANTS = 2
DEFAULT_HEADLINES = 3
DEFAULT_DESCRIPTIONS = 2
DEFAULT_SITELINKS = 4
DEFAULT_CALLOUTS = 4
DEFAULT_LANGUAGE = os.getenv("DEFAULT_LANGUAGE", "Tiếng Việt")
SUPPORTED_LANGUAGES = ("Tiếng Việt", "English")

# Per-count ceiling the form enforces, and the ad-group count range.
MAX_ITEM_COUNT = 10
MAX_AD_GROUPS = 10

# Single-item regeneration budget.
REGENERATE_MAX_ATTEMPTS = int(os.getenv("REGENERATE_MAX_ATTEMPTS", "3"))

# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def default_model_for(provider: str) -> str:
    """Return the model to use for a provider when none is given."""
    if provider == DEFAULT_PROVIDER:
        return DEFAULT_MODEL
    return PROVIDER_DEFAULT_MODELS.get(provider, DEFAULT_MODEL)
