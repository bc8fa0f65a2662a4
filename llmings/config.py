"""App configuration (LLM connection, card strategy).

get_config() layers three sources, later ones winning:

  1. _CONFIG_DEFAULTS
  2. config.json in the data directory (written by update_config)
  3. environment variables (LLM_PROVIDER_URL, LLM_API_KEY,
     LLM_PROVIDER_FORMAT, LLM_MODEL, LLM_TIMEOUT, CARD_STRATEGY),
     typically loaded from .env by the app factory

card_strategy:
  "per_member" — one card prompt per living member (default)
  "batch"      — one prompt returning "<id>|<summary>" lines
"""

import json
import logging
import os
from typing import Any

from llmings.llm import LLM, EchoLLM, HttpLLM
from llmings.storage import Storage

logger = logging.getLogger(__name__)

_CONFIG_DEFAULTS: dict[str, Any] = {
    "llm": {
        "provider_url": "http://localhost:5001",
        "api_key": "",
        "provider_format": "koboldcpp",
        "model": "",
        "timeout": 120.0,
    },
    "card_strategy": "per_member",
}

PROVIDER_FORMATS = ("koboldcpp", "openai", "openai_chat", "echo")
CARD_STRATEGIES = ("per_member", "batch")

_ENV_LLM_KEYS = {
    "LLM_PROVIDER_URL": "provider_url",
    "LLM_API_KEY": "api_key",
    "LLM_PROVIDER_FORMAT": "provider_format",
    "LLM_MODEL": "model",
    "LLM_TIMEOUT": "timeout",
}


def _merge(config: dict[str, Any], fields: dict[str, Any]) -> None:
    if isinstance(fields.get("llm"), dict):
        for key, value in fields["llm"].items():
            if key in config["llm"]:
                config["llm"][key] = value
    if "card_strategy" in fields:
        config["card_strategy"] = fields["card_strategy"]


def _validate(config: dict[str, Any]) -> None:
    llm = config["llm"]
    if llm["provider_format"] not in PROVIDER_FORMATS:
        raise ValueError(f"Unknown provider_format: {llm['provider_format']!r}")
    if config["card_strategy"] not in CARD_STRATEGIES:
        raise ValueError(f"Unknown card_strategy: {config['card_strategy']!r}")
    try:
        llm["timeout"] = float(llm["timeout"])
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid timeout: {llm['timeout']!r}") from e


def get_config(storage: Storage) -> dict[str, Any]:
    """Read config, returning defaults merged with stored values and env."""
    config: dict[str, Any] = json.loads(json.dumps(_CONFIG_DEFAULTS))
    _merge(config, storage.load_config())

    for env_key, field in _ENV_LLM_KEYS.items():
        value = os.getenv(env_key)
        if value:
            config["llm"][field] = value
    if os.getenv("CARD_STRATEGY"):
        config["card_strategy"] = os.environ["CARD_STRATEGY"]

    _validate(config)
    return config


def update_config(storage: Storage, fields: dict[str, Any]) -> dict[str, Any]:
    """Merge fields into the stored config and persist. Returns full config.

    Unknown keys are ignored; invalid values raise ValueError before anything
    is written.
    """
    stored: dict[str, Any] = json.loads(json.dumps(_CONFIG_DEFAULTS))
    _merge(stored, storage.load_config())
    _merge(stored, fields)
    _validate(stored)
    storage.save_config(stored)
    logger.info("config updated: %s", sorted(fields))
    return get_config(storage)


def build_llm(config: dict[str, Any]) -> LLM:
    llm = config["llm"]
    if llm["provider_format"] == "echo":
        return EchoLLM()
    return HttpLLM(
        provider_url=llm["provider_url"],
        api_key=llm["api_key"],
        provider_format=llm["provider_format"],
        model=llm["model"],
        timeout=llm["timeout"],
    )
