"""Auth API: sign-in, sign-out and session inspection."""

from fastapi import APIRouter, Request

from workdesk.api.v1.dependencies import ContextDep, SessionDep
from workdesk.core.limiter import limit_login
from workdesk.schemas.auth import LoginRequest, LoginResult, SessionInfo
from workdesk.schemas.envelope import Envelope

router = APIRouter()


@router.post("/login", response_model=Envelope[LoginResult])
@limit_login
async def login(request: Request, body: LoginRequest, context: ContextDep):
    """Verify username/password upstream and open a session (public endpoint)."""
    session = await context.sessions.authenticate(body.username, body.password)
    identity = {"sys_id": session.identity.id, **session.identity.attributes}
    return Envelope(
        result=LoginResult(
            token=session.token,
            identity=identity,
            user=identity,
            groups=session.groups,
            mode=session.mode.value,
        )
    )


@router.post("/logout", response_model=Envelope[bool])
async def logout(session: SessionDep, context: ContextDep):
    """Revoke the current session token."""
    await context.sessions.logout(session.token)
    return Envelope(result=True)


@router.get("/session", response_model=Envelope[SessionInfo])
async def session_info(session: SessionDep, context: ContextDep):
    """Credential mode plus stored and freshly fetched group memberships."""
    fresh = await context.sessions.fetch_groups(session.credential, session.identity.id)
    return Envelope(
        result=SessionInfo(
            mode=session.mode.value,
            user_sys_id=session.identity.id,
            user=session.identity.attributes,
            stored_groups=session.groups,
            fresh_groups=fresh,
            created_at=session.created_at,
        )
    )
