"""
Mutation watcher: makes numbers in content added after page load clickable.

Only element insertions are scanned, and only the inserted subtree. Bare
text nodes appended without a wrapping element are not re-scanned. The
watcher keeps no record of the spans it creates; each batch is handed to
`on_spans` (if given) and then forgotten.
"""

from collections.abc import Callable

from bs4 import Tag

from clicktocall.infrastructure.observability.logging import get_logger
from clicktocall.page.document import MutationRecord, PageDocument
from clicktocall.page.rewriter import linkify

logger = get_logger(__name__)

SpansCallback = Callable[[list[Tag]], None]


class MutationWatcher:
    def __init__(self, document: PageDocument, on_spans: SpansCallback | None = None):
        self.document = document
        self.on_spans = on_spans
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def start(self) -> None:
        if self._active:
            return
        self.document.observe(self._on_mutations)
        self._active = True

    def stop(self) -> None:
        self.document.disconnect(self._on_mutations)
        self._active = False

    def _on_mutations(self, records: list[MutationRecord]) -> list[Tag]:
        created: list[Tag] = []
        for record in records:
            for node in record.added_nodes:
                if not isinstance(node, Tag):
                    continue
                created.extend(linkify(self.document.soup, node))

        if created and self.on_spans is not None:
            self.on_spans(created)
        return created
