"""
Traceman Protocols.

Defines interfaces for external integrations.
"""

from traceman.protocols.store import DocumentStore

__all__ = [
    "DocumentStore",
]
