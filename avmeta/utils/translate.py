from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import quote

from curl_cffi import requests

from avmeta.utils.config import TRANSLATE_TARGET_LANGS, AppConfig
from avmeta.utils.logger import logger
from avmeta.utils.network import build_proxies

if TYPE_CHECKING:
    from avmeta.scraper.types import MetadataRecord


# The OpenAI-compatible provider always talks to this gateway and model.
OPENAI_URL = "https://gateway.ai.cloudflare.com/v1/c7301c245fab3e5e60a72e7bd911a64a/aiproxy/openai"
OPENAI_MODEL = "gpt-4o-mini"

_LANG_NAMES = {
    "en": "English",
    "ja": "Japanese",
    "zh-CN": "Simplified Chinese",
    "zh-TW": "Traditional Chinese",
}


def _normalize_target_lang(lang: str) -> str:
    s = (lang or "").strip()
    if s in TRANSLATE_TARGET_LANGS:
        return s
    return "zh-CN"


def _deepl_lang(lang: str) -> str:
    # DeepL expects e.g. EN, JA, ZH-HANS, ZH-HANT
    return {
        "en": "EN",
        "ja": "JA",
        "zh-CN": "ZH-HANS",
        "zh-TW": "ZH-HANT",
    }.get(lang, "ZH-HANS")


def _translate_deepl(text, target, *, api_key, base_url, proxies, timeout_sec):
    key = str(api_key or "").strip()
    if not key:
        logger.warning("translate deepl: missing api key; skip")
        return None
    # DeepL uses a different host for free keys (ending with :fx).
    host = "https://api-free.deepl.com" if key.endswith(":fx") else "https://api.deepl.com"
    url = (base_url or "").strip().rstrip("/") or host
    resp = requests.post(
        url=f"{url}/v2/translate",
        data={"auth_key": key, "text": text, "target_lang": _deepl_lang(target)},
        timeout=timeout_sec,
        verify=False,
        impersonate="chrome",
        proxies=proxies,
    )
    if resp.status_code != 200:
        logger.warning(f"translate deepl http={resp.status_code}")
        return None
    translations = (resp.json() or {}).get("translations")
    if isinstance(translations, list) and translations and isinstance(translations[0], dict):
        return translations[0].get("text")
    return None


def _translate_openai(text, source, target, *, api_key, proxies, timeout_sec):
    key = str(api_key or "").strip()
    if not key:
        logger.warning("translate openai: missing api key; skip")
        return None
    src = _LANG_NAMES.get(source, source or "the source language")
    prompt = (
        f"Translate the user's text from {src} to {_LANG_NAMES.get(target, target)}. "
        "Reply with the translation only."
    )
    resp = requests.post(
        url=f"{OPENAI_URL}/chat/completions",
        json={
            "model": OPENAI_MODEL,
            "temperature": 0,
            "messages": [
                {"role": "system", "content": prompt},
                {"role": "user", "content": text},
            ],
        },
        headers={"Authorization": f"Bearer {key}", "Content-Type": "application/json"},
        timeout=timeout_sec,
        verify=False,
        impersonate="chrome",
        proxies=proxies,
    )
    if resp.status_code != 200:
        logger.warning(f"translate openai http={resp.status_code}")
        return None
    choices = (resp.json() or {}).get("choices")
    if isinstance(choices, list) and choices:
        message = (choices[0] or {}).get("message") or {}
        content = message.get("content")
        return content.strip() if isinstance(content, str) else None
    return None


def _translate_google(text, source, target, *, proxies, timeout_sec):
    q = quote(text)
    sl = quote(source or "auto")
    tl = quote(target)
    url = f"https://translate.googleapis.com/translate_a/single?client=gtx&sl={sl}&tl={tl}&dt=t&q={q}"
    resp = requests.get(url=url, timeout=timeout_sec, verify=False, impersonate="chrome", proxies=proxies)
    if resp.status_code != 200:
        logger.warning(f"translate google http={resp.status_code}")
        return None
    data = resp.json()
    # Format: [[['translated','orig',...], ...], ...]
    if isinstance(data, list) and data and isinstance(data[0], list):
        parts = [str(seg[0] or "") for seg in data[0] if isinstance(seg, list) and seg]
        return "".join(parts).strip()
    return None


def translate_text(
    text: str | None,
    *,
    target_lang: str,
    source_lang: str = "ja",
    provider: str = "google",
    base_url: str = "",
    api_key: str = "",
    proxy_url: str = "",
    timeout_sec: float = 15.0,
) -> str | None:
    """Translate a string.

    Providers:
    - google: best-effort via Google's unauthenticated endpoint.
    - deepl: official API (requires api_key).
    - openai: fixed gateway URL and model (requires api_key).

    Returns translated text or the original on failure.
    """
    if not text:
        return text

    provider = (provider or "google").strip().lower()
    target = _normalize_target_lang(target_lang)
    proxies = build_proxies(proxy_url)

    try:
        if provider == "deepl":
            out = _translate_deepl(
                text, target, api_key=api_key, base_url=base_url, proxies=proxies, timeout_sec=timeout_sec
            )
        elif provider == "openai":
            out = _translate_openai(
                text, source_lang, target, api_key=api_key, proxies=proxies, timeout_sec=timeout_sec
            )
        else:
            out = _translate_google(text, source_lang, target, proxies=proxies, timeout_sec=timeout_sec)
    except Exception as e:
        logger.warning(f"translate {provider} failed: {e}")
        return text
    return out or text


def translate_record(record: MetadataRecord, cfg: AppConfig) -> MetadataRecord:
    """Translate title and summary in place using the configured provider."""
    for field_name in ("title", "summary"):
        value = getattr(record, field_name)
        if not value:
            continue
        setattr(
            record,
            field_name,
            translate_text(
                value,
                target_lang=cfg.translate_target_lang,
                provider=cfg.translate_provider,
                base_url=cfg.translate_base_url,
                api_key=cfg.translate_api_key,
                proxy_url=cfg.proxy_url,
                timeout_sec=cfg.timeout_sec,
            ),
        )
    return record
