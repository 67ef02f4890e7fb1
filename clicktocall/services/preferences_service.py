"""
Preferences Service - the settings collaborator.

Stores each user preference as its own JSON value and notifies subscribers
when keys change. Nothing here is cached: every read goes back to the store
so edits from another surface are picked up on the next call.
"""

from collections.abc import Awaitable, Callable
from typing import Any

from clicktocall.config import settings
from clicktocall.infrastructure.observability.logging import get_logger
from clicktocall.models.domain.session_domain import Preferences
from clicktocall.services import redis_store

logger = get_logger(__name__)

PREFERENCE_KEY_PREFIX = "pref"
INSTALL_MARKER_KEY = "pref_installed"

PREFERENCE_KEYS = (
    "tenant",
    "extension",
    "password",
    "dialPrefix",
    "clickToCallEnabled",
    "clickToCallDisabledSites",
    "isLoggedIn",
    "debugLogging",
    "useSidebar",
)

PreferenceListener = Callable[[dict[str, Any]], Awaitable[None]]


class PreferencesError(Exception):
    """Raised when preferences cannot be written."""

    pass


class PreferencesService:
    def __init__(self, store=None):
        self.store = store or redis_store
        self._listeners: list[PreferenceListener] = []

    def _redis_key(self, key: str) -> str:
        return f"{PREFERENCE_KEY_PREFIX}:{key}"

    async def get_raw(self, keys: tuple[str, ...] = PREFERENCE_KEYS) -> dict[str, Any]:
        """Return only the keys that are present in the store."""
        values = {}
        for key in keys:
            value = await redis_store.load_json(self.store, self._redis_key(key))
            if value is not None:
                values[key] = value
        return values

    async def get_preferences(self) -> Preferences:
        """Read every preference, applying defaults for absent keys."""
        return Preferences.model_validate(await self.get_raw())

    async def set_preferences(self, **values: Any) -> dict[str, Any]:
        """
        Write preference keys (camelCase names) and notify subscribers.

        Returns:
            dict: The keys whose stored value actually changed
        """
        unknown = set(values) - set(PREFERENCE_KEYS)
        if unknown:
            raise PreferencesError(f"Unknown preference keys: {', '.join(sorted(unknown))}")

        current = await self.get_raw(tuple(values))
        changed = {}

        for key, value in values.items():
            saved = await redis_store.save_json(self.store, self._redis_key(key), value)
            if not saved:
                raise PreferencesError(f"Failed to store preference '{key}'")
            if current.get(key) != value:
                changed[key] = value

        if changed:
            logger.info(
                "Preferences updated",
                keys=sorted(changed),
            )
            await self._notify(changed)

        return changed

    async def set_logged_in(self, is_logged_in: bool) -> None:
        await self.set_preferences(isLoggedIn=is_logged_in)

    async def install_defaults(self) -> bool:
        """
        Write first-install defaults once.

        Returns:
            bool: True if defaults were written, False if already installed
        """
        if await self.store.get(INSTALL_MARKER_KEY):
            return False

        await self.set_preferences(
            useSidebar=True,
            debugLogging=False,
            dialPrefix=settings.DEFAULT_DIAL_PREFIX,
            clickToCallEnabled=True,
            clickToCallDisabledSites=[],
        )
        await self.store.set_with_ttl(INSTALL_MARKER_KEY, "1")
        logger.info("Default preferences installed")
        return True

    def subscribe(self, listener: PreferenceListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: PreferenceListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def _notify(self, changed: dict[str, Any]) -> None:
        for listener in list(self._listeners):
            try:
                await listener(changed)
            except Exception as e:
                logger.error(
                    "Preference listener failed",
                    keys=sorted(changed),
                    error=str(e),
                    error_type=type(e).__name__,
                )


# Global instance
preferences_service = PreferencesService()
