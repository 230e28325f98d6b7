"""
Configuration for the desktop bot.

Two files feed the runtime:
- config.json   behaviour knobs (timeouts, screenshot size, logging)
- settings.yaml provider credentials, safe to keep out of version control

Both are optional. Paths can be overridden with DESKTOP_BOT_CONFIG and
DESKTOP_BOT_SETTINGS.
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)


CONFIG_FILE = Path(os.environ.get("DESKTOP_BOT_CONFIG", "config.json"))
SETTINGS_FILE = Path(os.environ.get("DESKTOP_BOT_SETTINGS", "settings.yaml"))

DEFAULT_CONFIG: Dict[str, Any] = {
    "model_name": "gpt-4o",
    "api_key_env": "OPENAI_API_KEY",  # Set this env var instead of hardcoding
    "api_base_url": "https://api.openai.com/v1",
    "max_tokens": 1024,
    "temperature": 0.2,
    "request_timeout_sec": 60,  # Upper bound for a single model round-trip
    "max_wait_sec": 2.0,  # Ceiling for the model's wait action
    "max_turns": 0,  # 0 = until the model stops or the user cancels
    "screenshot_width": 1024,  # Resolution the model sees and reasons in
    "screenshot_height": 768,
    "command_timeout_sec": 30,
    "kill_xy_threshold": 8,
    "kill_poll_sec": 0.2,
    "pyautogui_pause_sec": 0.05,
    "type_interval_sec": 0.008,
    "log_level": "INFO",
    "log_file": "agent.log",
    "events_log_enabled": True,
    "events_file": "agent_events.jsonl",
}


class ConfigError(Exception):
    """Raised when the runtime cannot be configured (e.g. no API key)."""


@dataclass
class Provider:
    api_key: str
    api_base_url: str
    model_name: str
    label: str


def load_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load config from file or use defaults."""
    path = path or CONFIG_FILE
    config = DEFAULT_CONFIG.copy()
    if path.exists():
        with open(path, encoding="utf-8") as f:
            user_config = json.load(f)
        config.update(user_config)
    return config


def save_config(config: Dict[str, Any], path: Optional[Path] = None) -> None:
    """Save config to file."""
    path = path or CONFIG_FILE
    with open(path, "w", encoding="utf-8") as f:
        json.dump(config, f, indent=2)


def load_settings(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load API keys and provider overrides from settings.yaml."""
    path = path or SETTINGS_FILE
    if not path.exists():
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Could not load {path}: {e}")
        return {}


def resolve_provider(config: Dict[str, Any], settings: Dict[str, Any]) -> Provider:
    """Resolve the active provider from settings, falling back to config + env."""
    providers = settings.get("providers") or {}
    active = settings.get("active", "openai")
    provider = providers.get(active)

    if provider:
        api_key = provider.get("api_key") or os.environ.get(
            provider.get("api_key_env", f"{active.upper()}_API_KEY")
        )
        if api_key:
            base = provider.get("api_base_url", config.get("api_base_url"))
            model = provider.get("model_name", config.get("model_name"))
            return Provider(api_key, base, model, active)

    # Fallback: flat api_key / api_base_url
    api_key = settings.get("api_key") or os.environ.get(config.get("api_key_env", "OPENAI_API_KEY"))
    if api_key:
        base = settings.get("api_base_url") or config.get("api_base_url")
        return Provider(api_key, base, config.get("model_name"), "default")

    raise ConfigError(
        "No API key found. Either add providers.<name>.api_key to settings.yaml, "
        f"or set the {config.get('api_key_env', 'OPENAI_API_KEY')} environment variable."
    )
