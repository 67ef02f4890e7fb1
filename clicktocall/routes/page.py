"""
Page Routes
Linkify a page: find phone numbers in submitted markup and return it with
clickable phone spans, honouring the site enable/disable preferences.
"""

from fastapi import APIRouter

from clicktocall.models.api.action_request import LinkifyRequest
from clicktocall.models.api.action_response import LinkifyResponse
from clicktocall.page.session import PageSession

router = APIRouter(prefix="/page", tags=["page"])


@router.post("/linkify", response_model=LinkifyResponse)
async def linkify_page(request: LinkifyRequest):
    session = PageSession(request.html, request.hostname, dismiss_after=None)
    try:
        enabled = await session.start()
        return LinkifyResponse(enabled=enabled, html=session.render(), numbers=session.numbers())
    finally:
        session.close()
