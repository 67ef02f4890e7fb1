"""
HTML page model for the click-to-call engine.

Wraps a BeautifulSoup tree and reports content inserted through it to
registered observers, the way a browser reports subtree insertions. Changes
made directly on the tree (such as the rewriter replacing text nodes) are
not reported.
"""

from collections.abc import Callable
from dataclasses import dataclass, field

from bs4 import BeautifulSoup, NavigableString, PageElement, Tag

HTML_PARSER = "html.parser"


@dataclass
class MutationRecord:
    target: Tag
    added_nodes: list[PageElement] = field(default_factory=list)


MutationCallback = Callable[[list[MutationRecord]], None]


class PageDocument:
    def __init__(self, markup: str):
        self.soup = BeautifulSoup(markup, HTML_PARSER)
        self._observers: list[MutationCallback] = []

    @property
    def body(self) -> Tag:
        """The <body> element, or the whole tree for fragments without one."""
        return self.soup.body or self.soup

    def observe(self, callback: MutationCallback) -> None:
        if callback not in self._observers:
            self._observers.append(callback)

    def disconnect(self, callback: MutationCallback) -> None:
        if callback in self._observers:
            self._observers.remove(callback)

    def new_tag(self, name: str, **attrs) -> Tag:
        return self.soup.new_tag(name, attrs=attrs)

    def insert_html(self, parent: Tag, markup: str) -> list[PageElement]:
        """Parse a fragment and append its top-level nodes to `parent`."""
        fragment = BeautifulSoup(markup, HTML_PARSER)
        return self.append(parent, *list(fragment.contents))

    def insert_text(self, parent: Tag, text: str) -> list[PageElement]:
        return self.append(parent, NavigableString(text))

    def append(self, parent: Tag, *nodes: PageElement) -> list[PageElement]:
        added = []
        for node in nodes:
            parent.append(node)
            added.append(node)
        if added:
            self._notify([MutationRecord(target=parent, added_nodes=added)])
        return added

    def _notify(self, records: list[MutationRecord]) -> None:
        for callback in list(self._observers):
            callback(records)

    def render(self) -> str:
        return str(self.soup)
