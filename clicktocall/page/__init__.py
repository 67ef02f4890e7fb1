"""
In-page click-to-call engine.

- document: HTML page model with insertion notifications
- rewriter: text node scanning and phone span substitution
- watcher: re-scans content inserted after the initial pass
- session: per-page lifecycle, click handling and notifications
"""

from clicktocall.page.document import MutationRecord, PageDocument
from clicktocall.page.rewriter import linkify
from clicktocall.page.session import PageSession, is_click_to_call_enabled
from clicktocall.page.watcher import MutationWatcher

__all__ = [
    "MutationRecord",
    "PageDocument",
    "MutationWatcher",
    "PageSession",
    "is_click_to_call_enabled",
    "linkify",
]
