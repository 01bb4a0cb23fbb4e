# settings.py — env / st.secrets lookup for state path, timezone and display currency
from __future__ import annotations

import os
from datetime import timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import streamlit as st

DEFAULT_STATE_PATH = os.path.join(os.path.expanduser("~"), ".bankroll_coach", "state.json")


def _get_secret(name: str, default: str | None = None) -> str | None:
    v = os.getenv(name)
    if v:
        return v
    try:
        if name in st.secrets:
            v2 = st.secrets[name]
            if v2:
                return str(v2)
    except Exception:
        # no secrets.toml at all is the normal local case
        pass
    return default


def app_env() -> str:
    return (_get_secret("APP_ENV", "prod") or "prod").lower().strip()


def state_path() -> str:
    p = _get_secret("BANKROLL_STATE_PATH") or DEFAULT_STATE_PATH
    if app_env() == "dev" and not _get_secret("BANKROLL_STATE_PATH"):
        root, ext = os.path.splitext(p)
        p = f"{root}.dev{ext or '.json'}"
    return os.path.expanduser(p)


def app_tz() -> tzinfo:
    """Zone that defines 'today' for locks and pattern buckets. Falls back to UTC."""
    name = (_get_secret("APP_TZ", "UTC") or "UTC").strip()
    if name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        print(f"[settings.app_tz] unknown zone {name!r}, using UTC: {e!r}")
        return timezone.utc


def currency() -> str:
    return _get_secret("CURRENCY", "R$") or "R$"


def money(value: float, signed: bool = False) -> str:
    sign = ""
    if signed:
        sign = "+" if value >= 0 else "-"
        value = abs(value)
    elif value < 0:
        sign = "-"
        value = abs(value)
    return f"{sign}{currency()} {value:,.2f}"
