"""
Traceman Settings.

Supports two formats (dict takes priority):

    # Option 1: Dict
    TRACEMAN = {
        "STORE_BACKEND": "traceman.adapters.rest.RestDocumentStore",
        "DEFAULT_QUALITY_SCORE": 3,
    }

    # Option 2: Flat
    TRACEMAN_STORE_BACKEND = "traceman.adapters.rest.RestDocumentStore"
    TRACEMAN_DEFAULT_QUALITY_SCORE = 3

All settings have defaults; no configuration is required.
"""

import threading

from django.conf import settings


# ── Defaults ──

DEFAULTS = {
    "STORE_BACKEND": "traceman.adapters.orm.OrmDocumentStore",
    "REST_API_BASE": "http://localhost:4000",
    "REST_TIMEOUT": 10,
    "CACHE_ALIAS": "default",
    "CACHE_TIMEOUT": 300,
    "DEFAULT_DEPARTMENT": "BUTCHERY",
    "DEPARTMENT_CODES": {
        "1154": "BAKERY",
        "1152": "BUTCHERY",
        "1155": "HMR",
    },
    "DEPARTMENT_MANAGERS": {
        "BAKERY": "Monica",
        "BUTCHERY": "Clive",
        "HMR": "Monica",
    },
    "DEFAULT_COUNTRY_OF_ORIGIN": {
        "BAKERY": "South Africa",
        "BUTCHERY": "South Africa",
        "HMR": "South Africa",
    },
    "DEFAULT_QUALITY_SCORE": 3,
    "SELL_BY_DAYS": 7,
    "CATALOG_CSV_NAMES": {
        "BAKERY": "Bakery.csv",
        "BUTCHERY": "Butchery.csv",
        "HMR": "HMR.csv",
    },
}


# ── Accessors ──

_sentinel = object()


def get_setting(name, default=_sentinel):
    """
    Get a traceman setting.

    Looks up in order:
    1. TRACEMAN dict (e.g. TRACEMAN = {"STORE_BACKEND": "..."})
    2. Flat setting (e.g. TRACEMAN_STORE_BACKEND = "...")
    3. DEFAULTS
    """
    traceman_dict = getattr(settings, "TRACEMAN", {})
    if name in traceman_dict:
        return traceman_dict[name]

    flat_value = getattr(settings, f"TRACEMAN_{name}", _sentinel)
    if flat_value is not _sentinel:
        return flat_value

    if default is not _sentinel:
        return default

    return DEFAULTS.get(name)


_store_backend_lock = threading.Lock()
_store_backend_instance = None


def get_store_backend():
    """
    Return the configured document store instance.

    The store persists schedules and audit records and serves the
    recipe, staff and supplier reference data.
    """
    global _store_backend_instance

    if _store_backend_instance is None:
        with _store_backend_lock:
            if _store_backend_instance is None:  # double-checked
                from django.utils.module_loading import import_string

                path = get_setting("STORE_BACKEND")
                _store_backend_instance = import_string(path)()

    return _store_backend_instance


def reset_store_backend() -> None:
    """Reset singleton (for tests)."""
    global _store_backend_instance
    _store_backend_instance = None
