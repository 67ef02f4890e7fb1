"""
Action Routes
HTTP bridge for the UI surfaces: one tagged action per request, one
{success, result | error} reply.
"""

from fastapi import APIRouter

from clicktocall.infrastructure.observability.logging import get_logger
from clicktocall.models.api.action_request import ActionEnvelope
from clicktocall.models.api.action_response import ActionResponse
from clicktocall.services.action_dispatcher import action_dispatcher

logger = get_logger(__name__)

router = APIRouter(tags=["actions"])


@router.post("/actions", response_model=ActionResponse)
async def run_action(envelope: ActionEnvelope):
    """Dispatch a UI action (makeCall, testLogin, logout, getCallHistory, ...)."""
    action = envelope.root
    response = await action_dispatcher.dispatch(action)

    if not response.success:
        logger.info(
            "Action returned error",
            action=action.action,
            error_code=response.error_code,
            origin=response.origin,
        )

    return response
