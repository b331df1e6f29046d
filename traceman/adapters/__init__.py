"""
Traceman Adapters.

DocumentStore implementations:
- orm: Django models (default STORE_BACKEND)
- memory: in-process dicts, for development and tests
- rest: json-server style HTTP API via requests

Adapters are loaded by dotted path (see traceman.conf.get_store_backend),
so nothing is imported here.
"""
