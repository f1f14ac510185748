"""
Session management module.

This module provides the session store used by session-middleware hosts:
per-request get/set/touch/destroy on top of a record store, expiry rules,
and a callback adapter for hosts that expect completion callbacks.
"""

from sessionkeeper.session.callbacks import CallbackSessionStore
from sessionkeeper.session.expiring_store import ExpiringSessionStore
from sessionkeeper.session.expiry import ExpiryPolicy, compute_expiry, should_refresh
from sessionkeeper.session.store import SessionStoreProtocol

__all__ = [
    "CallbackSessionStore",
    "ExpiringSessionStore",
    "ExpiryPolicy",
    "SessionStoreProtocol",
    "compute_expiry",
    "should_refresh",
]
