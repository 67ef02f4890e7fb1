"""
Page session: click-to-call for one page.

Runs the initial scan, then watches for inserted content, turns clicks on
phone spans into makeCall actions and shows the outcome as a notification
element in the page.
"""

import asyncio
import re
from collections.abc import Awaitable, Callable
from typing import Any

from bs4 import Tag

from clicktocall.config import settings
from clicktocall.infrastructure.observability.logging import get_logger
from clicktocall.models.api.action_request import MakeCallAction
from clicktocall.models.api.action_response import ActionResponse
from clicktocall.models.domain.session_domain import Preferences
from clicktocall.page.document import PageDocument
from clicktocall.page.rewriter import NOTIFICATION_CLASS, find_clickable_spans, linkify
from clicktocall.page.watcher import MutationWatcher
from clicktocall.recognition.resolver import format_for_display, to_dialable
from clicktocall.services.action_dispatcher import action_dispatcher
from clicktocall.services.preferences_service import preferences_service

logger = get_logger(__name__)

RELOAD_KEYS = frozenset({"clickToCallEnabled", "clickToCallDisabledSites"})

_SCHEME = re.compile(r"^https?://")

Dispatch = Callable[[MakeCallAction], Awaitable[ActionResponse | None]]


def normalize_site(site: str) -> str:
    """Strip scheme and trailing slash from a disabled-site entry."""
    return _SCHEME.sub("", site.strip()).rstrip("/").lower()


def is_site_disabled(hostname: str, disabled_sites: list[str]) -> bool:
    """Match the hostname itself or any parent domain in the list."""
    hostname = hostname.lower()
    for site in disabled_sites:
        normalized = normalize_site(site)
        if normalized and (hostname == normalized or hostname.endswith("." + normalized)):
            return True
    return False


def is_click_to_call_enabled(preferences: Preferences, hostname: str) -> bool:
    if not preferences.click_to_call_enabled:
        return False
    return not is_site_disabled(hostname, preferences.click_to_call_disabled_sites)


class PageSession:
    def __init__(
        self,
        markup: str,
        hostname: str,
        preferences=None,
        dispatch: Dispatch | None = None,
        dismiss_after: float | None = settings.NOTIFICATION_DISMISS_SECONDS,
    ):
        self.markup = markup
        self.hostname = hostname
        self.preferences = preferences or preferences_service
        self.dispatch = dispatch or action_dispatcher.dispatch
        self.dismiss_after = dismiss_after
        self.document = PageDocument(markup)
        self.watcher = MutationWatcher(self.document, on_spans=self._on_spans_created)
        self.enabled = False

    async def is_enabled(self) -> bool:
        try:
            prefs = await self.preferences.get_preferences()
        except Exception as e:
            logger.error("Error checking click-to-call settings", error=str(e))
            return True
        return is_click_to_call_enabled(prefs, self.hostname)

    async def start(self) -> bool:
        """Initial scan followed by watching; False if disabled for this site."""
        self.preferences.subscribe(self._on_preferences_changed)

        self.enabled = await self.is_enabled()
        if not self.enabled:
            logger.info("Click-to-call disabled for this site", hostname=self.hostname)
            return False

        spans = linkify(self.document.soup, self.document.body)
        self.watcher.start()
        logger.info("Page scanned", hostname=self.hostname, numbers=len(spans))
        return True

    def close(self) -> None:
        self.watcher.stop()
        self.preferences.unsubscribe(self._on_preferences_changed)

    async def reload(self) -> bool:
        """Rebuild the page from its original markup and start over."""
        self.close()
        self.document = PageDocument(self.markup)
        self.watcher = MutationWatcher(self.document, on_spans=self._on_spans_created)
        return await self.start()

    async def _on_preferences_changed(self, changed: dict[str, Any]) -> None:
        if RELOAD_KEYS.intersection(changed):
            logger.info("Click-to-call settings changed, reloading page", hostname=self.hostname)
            await self.reload()

    def _on_spans_created(self, spans: list[Tag]) -> None:
        logger.debug("Inserted content linkified", hostname=self.hostname, numbers=len(spans))

    def clickable_spans(self) -> list[Tag]:
        return find_clickable_spans(self.document.body)

    def numbers(self) -> list[str]:
        return [span.get("data-phone") or to_dialable(span.get_text()) for span in self.clickable_spans()]

    async def click(self, span: Tag) -> ActionResponse | None:
        """Dial the number in a phone span and report the outcome in the page."""
        phone_number = to_dialable(span.get_text())

        try:
            response = await self.dispatch(MakeCallAction(phone_number=phone_number))
        except Exception as e:
            logger.error("Error making call", error=str(e), error_type=type(e).__name__)
            self.show_notification(
                f"Failed to initiate call: {str(e) or 'Unknown error'}", "error"
            )
            return None

        if response is not None and response.success:
            extension = (response.result or {}).get("extension")
            self.show_notification(
                f"Calling {format_for_display(phone_number)}...", "success", extension
            )
        elif response is not None and response.error:
            self.show_notification(response.error, "error")
        else:
            self.show_notification("No response from extension", "error")
        return response

    def show_notification(self, message: str, kind: str, extension: str | None = None) -> Tag:
        """Append a toast to the body; it removes itself after dismiss_after seconds."""
        document = self.document
        notification = document.new_tag(
            "div", **{"class": [NOTIFICATION_CLASS, f"{NOTIFICATION_CLASS}-{kind}"]}
        )
        content = document.new_tag("div", **{"class": f"{NOTIFICATION_CLASS}-content"})
        icon = document.new_tag("div", **{"class": f"{NOTIFICATION_CLASS}-icon"})
        body = document.new_tag("div", **{"class": f"{NOTIFICATION_CLASS}-body"})

        calling = re.match(r"^Calling (.+?)\.\.\.$", message)
        if calling:
            number = calling.group(1)
            title = document.new_tag("div", **{"class": f"{NOTIFICATION_CLASS}-number"})
            title.string = f"Calling {number} from {extension}" if extension else f"Calling {number}"
        else:
            title = document.new_tag("div", **{"class": f"{NOTIFICATION_CLASS}-title"})
            title.string = message

        body.append(title)
        content.append(icon)
        content.append(body)
        notification.append(content)

        document.append(document.body, notification)

        if self.dismiss_after:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                loop = None
            if loop is not None:
                loop.call_later(self.dismiss_after, notification.extract)

        return notification

    def render(self) -> str:
        return self.document.render()
