"""
Configuration settings for the page feedback store.

Loads settings from environment variables with sensible defaults.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent
DATA_DIR = Path(os.getenv("FEEDBACK_DATA_DIR", str(PROJECT_ROOT / "data" / "feedback")))

# Local slot names
ENTRIES_SLOT = "sdl_feedback"
NAME_SLOT = "sdl_username"

# Entry limits
ANONYMOUS_NAME = "anonymous"
MAX_NAME_LENGTH = 40
MAX_MESSAGE_LENGTH = 1000
MAX_AGENT_LENGTH = 120
DEFAULT_PAGE = "index"

# Remote store (PostgREST / Supabase style). Both must be set to enable sync.
REMOTE_URL = os.getenv("FEEDBACK_REMOTE_URL", "")
REMOTE_KEY = os.getenv("FEEDBACK_REMOTE_KEY", "")
REMOTE_TABLE = os.getenv("FEEDBACK_REMOTE_TABLE", "feedback")
REMOTE_TIMEOUT = float(os.getenv("FEEDBACK_REMOTE_TIMEOUT", "10"))

# Debug mode
DEBUG = os.getenv("DEBUG", "false").lower() in ("true", "1", "yes")


def validate_config() -> list[str]:
    """Validate the configuration settings, returning a list of problems."""
    errors = []

    if bool(REMOTE_URL) != bool(REMOTE_KEY):
        errors.append(
            "FEEDBACK_REMOTE_URL and FEEDBACK_REMOTE_KEY must be set together; remote sync is disabled"
        )

    if REMOTE_URL and not REMOTE_URL.startswith(("http://", "https://")):
        errors.append(f"FEEDBACK_REMOTE_URL has no http(s) scheme: {REMOTE_URL}")

    if REMOTE_TIMEOUT <= 0:
        errors.append(f"FEEDBACK_REMOTE_TIMEOUT must be positive: {REMOTE_TIMEOUT}")

    return errors


if __name__ == "__main__":
    print("Configuration Settings")
    print("=" * 50)
    print(f"PROJECT_ROOT: {PROJECT_ROOT}")
    print(f"DATA_DIR: {DATA_DIR}")
    print(f"REMOTE_URL: {REMOTE_URL or '(unset)'}")
    print(f"REMOTE_KEY: {'(set)' if REMOTE_KEY else '(unset)'}")
    print(f"REMOTE_TABLE: {REMOTE_TABLE}")
    print(f"REMOTE_TIMEOUT: {REMOTE_TIMEOUT}")
    print(f"DEBUG: {DEBUG}")
    print("=" * 50)
    problems = validate_config()
    for problem in problems:
        print(f"Config Error: {problem}")
    print(f"Config valid: {not problems}")
