"""Session endpoints: choose whose portfolio is active."""

from fastapi import APIRouter, Depends

from papertrade.api.deps import get_context
from papertrade.api.schemas import SessionOpenRequest, SessionResponse
from papertrade.app_context import AppContext

router = APIRouter(prefix="/session", tags=["session"])


@router.post("", response_model=SessionResponse)
async def open_session(
    request: SessionOpenRequest,
    ctx: AppContext = Depends(get_context),
) -> SessionResponse:
    """
    Open a session for ``owner_id``, or the anonymous local session.

    The previous session is replaced; a refresh tick still running for it
    discards its result.
    """
    session = await ctx.open_session(request.owner_id)
    return SessionResponse(
        session_id=session.session_id,
        owner_id=session.owner_id,
        anonymous=session.is_anonymous,
        loaded=session.is_loaded,
    )
