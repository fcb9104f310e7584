"""Static configuration for shopdesk.

User-editable settings (API location, paging, debounce delays, logging) live
in a single JSON file; secrets such as the API token come from the
environment so they stay out of the repo.
"""

import json
import os

from dotenv import load_dotenv

from core.config import ApiConfig, FormConfig, ListConfig

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

load_dotenv()

# config.json sits at the project root unless SHOPDESK_CONFIG points elsewhere.
CONFIG_PATH = os.getenv("SHOPDESK_CONFIG") or os.path.join(PROJECT_ROOT, "config.json")


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _ms(value, default_ms: int) -> float:
    try:
        return max(0, int(value)) / 1000
    except (TypeError, ValueError):
        return default_ms / 1000


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# REST collaborator. The token is optional (cookie sessions work without it).
_api = _CONFIG.get("api", {})
API = ApiConfig(
    base_url=os.getenv("SHOPDESK_API_URL") or _api.get("base_url", "http://localhost:8000/api"),
    timeout_seconds=float(_api.get("timeout_seconds", 15)),
    token=os.getenv("SHOPDESK_API_TOKEN") or None,
)

# List pages: rows per page and the quiet period before a search is sent.
_lists = _CONFIG.get("lists", {})
LISTS = ListConfig(
    page_size=max(1, int(_lists.get("page_size", 10))),
    search_delay=_ms(_lists.get("search_delay_ms"), 400),
)

# Form dialogs: quiet period before a full validation pass.
_forms = _CONFIG.get("forms", {})
FORMS = FormConfig(validation_delay=_ms(_forms.get("validation_delay_ms"), 300))

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
