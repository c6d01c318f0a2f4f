from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict

import yaml

logger = logging.getLogger(__name__)

POLICY_ENV_VAR = "STATEMENT_POLICY_PATH"


@dataclass(frozen=True)
class ExtractionPolicy:
    min_text_yield: int = 50
    ocr_dpi: int = 200
    ocr_lang: str = "eng"
    ocr_psm: int = 6
    bank_name_window: int = 12
    statement_date_window: int = 20


_POLICY_CACHE: Dict[str, Dict] = {}


def _default_policy_path() -> Path:
    """
    policy.yaml lives at repository root (one level above api/).
    """
    return Path(__file__).resolve().parents[3] / "policy.yaml"


def load_policy(path: str | Path | None = None) -> Dict:
    """
    Load and cache the YAML policy definition.
    """
    env_path = os.getenv(POLICY_ENV_VAR)
    target = Path(path) if path else (Path(env_path) if env_path else _default_policy_path())
    cache_key = str(target)
    if cache_key in _POLICY_CACHE:
        return _POLICY_CACHE[cache_key]

    if not target.exists():
        logger.info("No policy file at %s; using built-in defaults", target)
        _POLICY_CACHE[cache_key] = {}
        return {}

    with target.open("r", encoding="utf-8") as fp:
        data = yaml.safe_load(fp) or {}
    _POLICY_CACHE[cache_key] = data
    return data


def _coerce(name: str, value: Any, default: Any) -> Any:
    try:
        return type(default)(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring invalid policy value %s=%r", name, value)
        return default


def build_extraction_policy(policy: Dict | None = None) -> ExtractionPolicy:
    policy = load_policy() if policy is None else policy
    merged: Dict[str, Any] = {}
    for section in ("extraction", "pdf_text"):
        merged.update(policy.get(section) or {})

    defaults = ExtractionPolicy()
    kwargs: Dict[str, Any] = {}
    for f in fields(ExtractionPolicy):
        if f.name in merged:
            kwargs[f.name] = _coerce(f.name, merged[f.name], getattr(defaults, f.name))
    return ExtractionPolicy(**kwargs)
