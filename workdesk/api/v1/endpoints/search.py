"""Typeahead search for the assignment pickers."""

from typing import Annotated, Any

from fastapi import APIRouter, Query

from workdesk.api.v1.dependencies import ContextDep, SessionDep
from workdesk.schemas.envelope import Envelope

router = APIRouter()

SearchTerm = Annotated[str, Query(description="Login name, name or email fragment")]


@router.get("/search/users", response_model=Envelope[list[dict[str, Any]]])
async def search_users(session: SessionDep, context: ContextDep, q: SearchTerm = ""):
    return Envelope(result=await context.work_items.search_users(session.credential, q))


@router.get("/search/groups", response_model=Envelope[list[dict[str, Any]]])
async def search_groups(session: SessionDep, context: ContextDep, q: SearchTerm = ""):
    return Envelope(result=await context.work_items.search_groups(session.credential, q))
