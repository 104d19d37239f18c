"""User sign-in endpoint."""

import sqlite3

from fastapi import APIRouter, Depends

from api.dependencies import get_admin_policy, get_db, get_session, verify_api_key
from api.models.responses import UserResponse
from models.events import Session
from services.users import AdminPolicy, ensure_user

router = APIRouter(prefix="/v1/users", dependencies=[Depends(verify_api_key)])


@router.post("/sign-in", response_model=UserResponse)
async def sign_in(
    session: Session | None = Depends(get_session),
    conn: sqlite3.Connection = Depends(get_db),
    admin_policy: AdminPolicy = Depends(get_admin_policy),
):
    """Return the caller's user record, creating it with a role on first sign-in."""
    return ensure_user(conn, session, admin_policy)
