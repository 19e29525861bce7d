"""
Configuration settings for PageQuiz.

This module provides the Config class with all settings.
When installed as a package, values come from environment variables
(optionally loaded from a .env file) with sensible defaults.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from the first .env found
for env_path in [
    Path.cwd() / ".env",  # Current working directory
    Path(__file__).parent.parent / ".env",  # Package root (when running from source)
    Path.home() / ".pagequiz" / ".env",  # User config directory
]:
    if env_path.exists():
        load_dotenv(env_path, override=True)
        break


class Config:
    """Main configuration class for PageQuiz."""

    # Paths
    BASE_DIR = Path(__file__).parent.parent
    CONFIG_DIR = Path(__file__).parent
    PROVIDER_PROFILES_PATH = Path(
        os.getenv("PAGEQUIZ_PROVIDER_PROFILES_PATH", str(CONFIG_DIR / "provider_profiles.yaml"))
    )

    # Provider Routing Settings
    # Profile (from provider_profiles.yaml) used when --profile is not given
    PROVIDER_PROFILE = os.getenv("PAGEQUIZ_PROVIDER_PROFILE", "default")

    # Gemini Settings
    GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
    GEMINI_BASE_URL = os.getenv(
        "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
    )

    # Generation Settings
    DEFAULT_TEMPERATURE = 0.7
    DEFAULT_MAX_TOKENS = 4096
    GENERATION_TIMEOUT = int(os.getenv("PAGEQUIZ_GENERATION_TIMEOUT", "120"))  # seconds, per request
    PROMPT_TEXT_LIMIT = 8000  # characters of extracted text embedded in a prompt

    # Exam Settings
    DEFAULT_QUESTION_COUNT = int(os.getenv("PAGEQUIZ_DEFAULT_QUESTION_COUNT", "10"))
    DEFAULT_DIFFICULTY = os.getenv("PAGEQUIZ_DEFAULT_DIFFICULTY", "medium")
    MIN_CONTENT_CHARS = 100  # below this the document has nothing to examine

    # Chapter Detection Settings
    CHAPTER_SCAN_MAX_PAGES = 50
    CHAPTER_SCAN_MAX_LINES = 10  # heading candidates per page
    CHAPTER_PREVIEW_CHARS = 150
    UNIFORM_MAX_SECTIONS = 10

    # Rule-based Fallback Settings
    MIN_SENTENCE_CHARS = 30
    MIN_WORD_CHARS = 4  # words must be longer than this to become answer keys
    MATCHING_PAIRS = 5
