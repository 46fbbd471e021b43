"""
Auth API Router
OAuth login flow and logout
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query

from yt_commenter.api.schemas import AuthUrlResponse, LoginResponse, MessageResponse
from yt_commenter.app.dependencies import get_session_gate
from yt_commenter.services.session_gate import SessionGate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.get("/url", response_model=AuthUrlResponse)
async def get_auth_url(gate: SessionGate = Depends(get_session_gate)):
    """Start a login; the returned URL leads to Google's consent screen"""
    state, url = await gate.begin_login()
    return AuthUrlResponse(url=url, state=state)


@router.get("/callback", response_model=LoginResponse)
async def auth_callback(
    code: str = Query(..., min_length=1),
    state: str = Query(..., min_length=1),
    gate: SessionGate = Depends(get_session_gate),
):
    """
    OAuth redirect target

    - **code**: Authorization code from Google
    - **state**: State issued by /api/auth/url
    """
    session = await gate.complete_login(code, state)
    return LoginResponse(
        session_id=session.session_id,
        user_id=session.user_id or "",
        expires_at=session.expires_at,
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    x_session_id: Optional[str] = Header(None),
    gate: SessionGate = Depends(get_session_gate),
):
    await gate.logout(x_session_id)
    return MessageResponse(message="Logged out")
