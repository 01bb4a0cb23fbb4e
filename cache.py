# cache.py — Session-scoped caching of the bankroll store
#
# Streamlit reruns the page script on every click. The store (and the JSON
# document behind it) is loaded once per browser session and kept in
# st.session_state until explicitly invalidated.

import streamlit as st
from typing import Callable, Optional

from store import BankrollStore

_STORE_KEY = "_cache_bankroll_store"
_LOAD_NOTICE_KEY = "_cache_load_notice_shown"


# ============================================================
#  STORE CACHE
# ============================================================

def get_cached_store(loader_fn: Callable[[], BankrollStore]) -> BankrollStore:
    """
    Cache the store for this browser session. Only reload on explicit invalidation.

    Usage:
        from cache import get_cached_store
        store = get_cached_store(lambda: BankrollStore(path, tz))
    """
    if _STORE_KEY not in st.session_state:
        st.session_state[_STORE_KEY] = loader_fn()
    return st.session_state[_STORE_KEY]


def peek_cached_store() -> Optional[BankrollStore]:
    return st.session_state.get(_STORE_KEY)


def invalidate_store_cache() -> None:
    """
    Force a re-read from disk on next access.
    """
    if _STORE_KEY in st.session_state:
        del st.session_state[_STORE_KEY]
    st.session_state.pop(_LOAD_NOTICE_KEY, None)


# ============================================================
#  LOAD NOTICE FLAG (corrupted-save warning shown once per session)
# ============================================================

def load_notice_pending() -> bool:
    return not bool(st.session_state.get(_LOAD_NOTICE_KEY, False))


def mark_load_notice_shown() -> None:
    st.session_state[_LOAD_NOTICE_KEY] = True
