"""
Action request models for the UI message bridge.

Each action is its own model with a literal `action` tag; the union is
discriminated on that tag so payloads are validated per action.
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, RootModel


class _Action(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class MakeCallAction(_Action):
    action: Literal["makeCall"] = "makeCall"
    phone_number: str = Field(..., alias="phoneNumber", description="Number as shown or typed")


class LoginCheckAction(_Action):
    action: Literal["testLogin"] = "testLogin"
    tenant: str
    extension: str
    password: str = Field(..., repr=False)


class LogoutAction(_Action):
    action: Literal["logout"] = "logout"


class GetLoginStatusAction(_Action):
    action: Literal["getLoginStatus"] = "getLoginStatus"


class GetCallHistoryAction(_Action):
    action: Literal["getCallHistory"] = "getCallHistory"


class ClearCallHistoryAction(_Action):
    action: Literal["clearCallHistory"] = "clearCallHistory"


class UpdateCallNoteAction(_Action):
    action: Literal["updateCallNote"] = "updateCallNote"
    phone_number: str = Field(..., alias="phoneNumber")
    timestamp: str
    note: str = ""


class GetLogsAction(_Action):
    action: Literal["getLogs"] = "getLogs"


class ClearLogsAction(_Action):
    action: Literal["clearLogs"] = "clearLogs"


class SetLoggingAction(_Action):
    action: Literal["setLogging"] = "setLogging"
    enabled: bool


class ExportCallHistoryAction(_Action):
    action: Literal["exportCallHistory"] = "exportCallHistory"


ActionRequest = Annotated[
    Union[
        MakeCallAction,
        LoginCheckAction,
        LogoutAction,
        GetLoginStatusAction,
        GetCallHistoryAction,
        ClearCallHistoryAction,
        UpdateCallNoteAction,
        GetLogsAction,
        ClearLogsAction,
        SetLoggingAction,
        ExportCallHistoryAction,
    ],
    Field(discriminator="action"),
]


class ActionEnvelope(RootModel[ActionRequest]):
    """Request body for POST /actions: exactly one tagged action."""

    pass


class LinkifyRequest(BaseModel):
    """Request for POST /page/linkify"""

    html: str = Field(..., description="Page or fragment markup")
    hostname: str = Field(..., min_length=1, description="Hostname the markup was served from")
