from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any


CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.json"

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)

TRANSLATE_PROVIDERS = {"google", "deepl", "openai"}
TRANSLATE_TARGET_LANGS = {"en", "zh-CN", "zh-TW", "ja"}


def config_path() -> Path:
    """Config file location; AVMETA_CONFIG overrides the default next to the package."""
    env = os.environ.get("AVMETA_CONFIG", "").strip()
    return Path(env).expanduser() if env else CONFIG_PATH


@dataclass
class AppConfig:
    # --- Network ---
    user_agent: str = DEFAULT_USER_AGENT
    # Example: http://127.0.0.1:7890
    proxy_url: str = ""
    timeout_sec: float = 25.0
    retry: int = 3
    retry_delay_sec: float = 2.0
    # Pause before every request (0 disables)
    request_delay_sec: float = 0.0

    # --- Translation (optional, title/summary post-processing) ---
    # Providers: google | deepl | openai
    translate_provider: str = "google"
    # Target language: en | zh-CN | zh-TW | ja
    translate_target_lang: str = "zh-CN"
    # deepl: auth_key; openai: bearer token
    translate_api_key: str = ""
    # Optional DeepL host override
    translate_base_url: str = ""

    def __post_init__(self) -> None:
        self.user_agent = str(self.user_agent or "").strip() or DEFAULT_USER_AGENT
        self.proxy_url = str(self.proxy_url or "").strip()

        try:
            self.timeout_sec = float(self.timeout_sec)
        except (TypeError, ValueError):
            self.timeout_sec = 25.0
        if self.timeout_sec <= 0:
            self.timeout_sec = 25.0

        try:
            self.retry = int(self.retry)
        except (TypeError, ValueError):
            self.retry = 3
        self.retry = max(1, min(self.retry, 10))

        for name, default in (("retry_delay_sec", 2.0), ("request_delay_sec", 0.0)):
            try:
                value = float(getattr(self, name))
            except (TypeError, ValueError):
                value = default
            setattr(self, name, max(0.0, value))

        # Normalize translation provider/lang
        self.translate_provider = str(self.translate_provider or "").strip().lower()
        if self.translate_provider not in TRANSLATE_PROVIDERS:
            self.translate_provider = "google"
        if self.translate_target_lang not in TRANSLATE_TARGET_LANGS:
            self.translate_target_lang = "zh-CN"

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary for serialization."""
        return {k: v for k, v in self.__dict__.items()}


def load_config(path: str | Path | None = None) -> AppConfig:
    p = Path(path) if path else config_path()
    if not p.exists():
        return AppConfig()
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return AppConfig()
    if not isinstance(data, dict):
        return AppConfig()

    cfg = AppConfig()
    for k, v in data.items():
        if hasattr(cfg, k):
            setattr(cfg, k, v)
    # Re-normalize after applying persisted values.
    cfg.__post_init__()
    return cfg


def save_config(cfg: AppConfig, path: str | Path | None = None) -> None:
    p = Path(path) if path else config_path()
    p.write_text(json.dumps(cfg.to_dict(), ensure_ascii=False, indent=4), encoding="utf-8")
