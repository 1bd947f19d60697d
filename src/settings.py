"""Static configuration for repowatch.

All user-editable settings (repositories, tokens, targets, logging) live in a
single JSON file for quick edits without touching Python.
"""

import json
import os

from dotenv import load_dotenv

from core.config import build_code_update_config

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# Tokens may be referenced from config.json as "env:NAME".
load_dotenv()

CONFIG_PATH = os.getenv("REPOWATCH_CONFIG", os.path.join(PROJECT_ROOT, "config.json"))


def _project_path(path: str) -> str:
    if os.path.isabs(path):
        return path
    return os.path.join(PROJECT_ROOT, path)


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# Repository groups, tokens and polling cadence consumed by the core.
CODE_UPDATE = build_code_update_config(_CONFIG.get("code_update", {}))

# Directories whose git checkouts feed auto-discovery.
CHECKOUT_DIRS = tuple(_project_path(path) for path in CODE_UPDATE.checkout_dirs)

# Where to store the SQLite database holding dedup markers.
_storage = _CONFIG.get("storage", {})
DB_PATH = _project_path(_storage.get("db_path", "repowatch.db"))

# Rendering settings; output_dir keeps the latest artifact on disk.
_renderer = _CONFIG.get("renderer", {})
TEMPLATE_DIR = _project_path(_renderer.get("template_dir", "templates"))
OUTPUT_DIR = _project_path(_renderer.get("output_dir", "output"))

# Telegram command that triggers an on-demand check.
COMMAND = _CONFIG.get("command", "/codeupdate")

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
