"""
Action Dispatcher - routes UI actions to their handlers.

One handler per action model type. Every outcome is returned as an
ActionResponse; click-to-call errors keep their code and origin so the UI
can tell a settings problem from a login problem or a call problem.
"""

from collections.abc import Awaitable, Callable
from typing import Any

from clicktocall.infrastructure.audit import activity_log as default_activity_log
from clicktocall.infrastructure.observability.logging import get_logger
from clicktocall.models.api.action_request import (
    ClearCallHistoryAction,
    ClearLogsAction,
    ExportCallHistoryAction,
    GetCallHistoryAction,
    GetLoginStatusAction,
    GetLogsAction,
    LoginCheckAction,
    LogoutAction,
    MakeCallAction,
    SetLoggingAction,
    UpdateCallNoteAction,
)
from clicktocall.models.api.action_response import ActionResponse, CallHistoryExport
from clicktocall.services.call_errors import ClickToCallError
from clicktocall.services.call_service import call_service as default_call_service

logger = get_logger(__name__)

ActionHandler = Callable[[Any], Awaitable[Any]]


class ActionDispatcher:
    def __init__(self, calls=None, activity=None):
        self.calls = calls or default_call_service
        self.activity = activity or default_activity_log
        self._handlers: dict[type, ActionHandler] = {
            MakeCallAction: self._make_call,
            LoginCheckAction: self._test_login,
            LogoutAction: self._logout,
            GetLoginStatusAction: self._get_login_status,
            GetCallHistoryAction: self._get_call_history,
            ClearCallHistoryAction: self._clear_call_history,
            UpdateCallNoteAction: self._update_call_note,
            GetLogsAction: self._get_logs,
            ClearLogsAction: self._clear_logs,
            SetLoggingAction: self._set_logging,
            ExportCallHistoryAction: self._export_call_history,
        }

    async def dispatch(self, action) -> ActionResponse:
        handler = self._handlers.get(type(action))
        if handler is None:
            raise ValueError(f"No handler registered for {type(action).__name__}")

        try:
            result = await handler(action)
            return ActionResponse(success=True, result=result)

        except ClickToCallError as e:
            return ActionResponse(success=False, **e.to_dict())

        except Exception as e:
            logger.error(
                "Action handler failed",
                action=action.action,
                error=str(e),
                error_type=type(e).__name__,
            )
            await self.activity.error(f"{action.action} failed: {e}")
            return ActionResponse(success=False, error=str(e) or type(e).__name__)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    async def _make_call(self, action: MakeCallAction) -> dict:
        await self.activity.info(f"Call request received for: {action.phone_number}")
        result = await self.calls.place_call(action.phone_number)
        return result.model_dump()

    async def _test_login(self, action: LoginCheckAction) -> dict:
        result = await self.calls.test_login(action.tenant, action.extension, action.password)
        return result.model_dump()

    async def _logout(self, action: LogoutAction) -> None:
        await self.calls.logout()

    async def _get_login_status(self, action: GetLoginStatusAction) -> dict:
        status = await self.calls.get_login_status()
        return status.model_dump(mode="json")

    async def _get_call_history(self, action: GetCallHistoryAction) -> list[dict]:
        entries = await self.calls.history.list_entries()
        return [entry.model_dump(by_alias=True) for entry in entries]

    async def _clear_call_history(self, action: ClearCallHistoryAction) -> None:
        await self.calls.history.clear()

    async def _update_call_note(self, action: UpdateCallNoteAction) -> dict:
        updated = await self.calls.history.update_note(
            action.phone_number, action.timestamp, action.note
        )
        return {"updated": updated}

    async def _get_logs(self, action: GetLogsAction) -> list[dict]:
        entries = await self.activity.entries()
        return [entry.model_dump(mode="json") for entry in entries]

    async def _clear_logs(self, action: ClearLogsAction) -> None:
        await self.activity.clear()

    async def _set_logging(self, action: SetLoggingAction) -> dict:
        self.activity.set_enabled(action.enabled)
        await self.calls.preferences.set_preferences(debugLogging=action.enabled)
        return {"enabled": self.activity.enabled}

    async def _export_call_history(self, action: ExportCallHistoryAction) -> dict:
        prefs = await self.calls.preferences.get_preferences()
        filename, content = await self.calls.history.export_csv(prefs.tenant, prefs.extension)
        return CallHistoryExport(filename=filename, content=content).model_dump()


# Global instance
action_dispatcher = ActionDispatcher()
