"""
DOM text rewriter.

Walks the text nodes under an element, resolves phone numbers in each one
and swaps the node for a run of plain text and clickable spans. Text under
SKIPPED_TAGS or inside our own injected elements is never touched, so running
the rewriter over its own output is a no-op. Each text node is matched on its
own: a number split across sibling nodes is not recognised.
"""

from collections.abc import Iterator

from bs4 import BeautifulSoup, NavigableString, PageElement, Tag

from clicktocall.infrastructure.observability.logging import get_logger
from clicktocall.models.domain.number_domain import NumberCandidate
from clicktocall.recognition.patterns import contains_number_like
from clicktocall.recognition.resolver import resolve_candidates, to_dialable

logger = get_logger(__name__)

PHONE_CLASS = "oneclick-phone"
NOTIFICATION_CLASS = "oneclick-notification"
OWN_CLASSES = frozenset(
    {
        PHONE_CLASS,
        NOTIFICATION_CLASS,
        f"{NOTIFICATION_CLASS}-content",
        f"{NOTIFICATION_CLASS}-body",
    }
)
# Text under these never renders as page content (or is user-editable)
SKIPPED_TAGS = frozenset({"script", "style", "head", "title", "textarea"})


def _classes(tag: Tag) -> list[str]:
    classes = tag.get("class") or []
    if isinstance(classes, str):
        return classes.split()
    return list(classes)


def _lineage(tag: Tag | None) -> Iterator[Tag]:
    current = tag
    while isinstance(current, Tag):
        yield current
        current = current.parent


def is_own_element(tag: Tag | None) -> bool:
    """True if the tag or any ancestor carries one of our marker classes."""
    return any(OWN_CLASSES.intersection(_classes(t)) for t in _lineage(tag))


def is_skipped_element(tag: Tag | None) -> bool:
    return any(t.name in SKIPPED_TAGS for t in _lineage(tag))


def is_scannable_text(node: PageElement) -> bool:
    # Comments, doctypes and script/style strings are NavigableString subclasses
    if type(node) is not NavigableString:
        return False
    parent = node.parent
    if parent is None or is_skipped_element(parent):
        return False
    return not is_own_element(parent)


def iter_scannable_text(root: Tag) -> list[NavigableString]:
    """Collect text nodes first; rewriting while iterating would skip siblings."""
    if is_own_element(root) or is_skipped_element(root):
        return []
    return [node for node in root.descendants if is_scannable_text(node)]


def create_clickable_span(soup: BeautifulSoup, text: str) -> Tag:
    span = soup.new_tag(
        "span",
        attrs={
            "class": PHONE_CLASS,
            "title": f"Click to call {text}",
            "data-phone": to_dialable(text),
        },
    )
    span.string = text
    return span


def rewrite_text_node(
    soup: BeautifulSoup, node: NavigableString, candidates: list[NumberCandidate]
) -> list[Tag]:
    """
    Replace `node` with literal gaps and one span per candidate.

    Candidates must be sorted by offset. One that starts inside the previous
    candidate is dropped so every character of the original text is emitted
    exactly once. Nodes without candidates are left alone.
    """
    if not candidates:
        return []

    text = str(node)
    pieces: list[PageElement] = []
    spans: list[Tag] = []
    last_index = 0

    for candidate in candidates:
        if candidate.start_offset < last_index:
            continue
        if candidate.start_offset > last_index:
            pieces.append(NavigableString(text[last_index : candidate.start_offset]))
        span = create_clickable_span(soup, candidate.text)
        pieces.append(span)
        spans.append(span)
        last_index = candidate.end_offset

    if last_index < len(text):
        pieces.append(NavigableString(text[last_index:]))

    node.replace_with(*pieces)
    return spans


def linkify(soup: BeautifulSoup, root: Tag) -> list[Tag]:
    """Scan the subtree under `root` and return the spans created."""
    created: list[Tag] = []
    for node in iter_scannable_text(root):
        text = str(node)
        if not contains_number_like(text):
            continue
        created.extend(rewrite_text_node(soup, node, resolve_candidates(text)))

    if created:
        logger.debug("Phone numbers linkified", root=root.name, count=len(created))
    return created


def find_clickable_spans(root: Tag) -> list[Tag]:
    return root.find_all("span", class_=PHONE_CLASS)
