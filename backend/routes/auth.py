"""
Auth endpoints
--------------
Password resolution for the client dashboard and the admin code check,
exposed for non-Streamlit front ends.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from access.resolver import current_code_version, resolve_password, verify_admin_code
from backend.deps import get_client
from core.schemas import AccessType, ClientInfo
from supabase_client.queries import get_active_code_version

router = APIRouter(prefix="/auth", tags=["auth"])


class LoginRequest(BaseModel):
    password: str


class LoginResponse(BaseModel):
    access_type: AccessType
    client_info: Optional[ClientInfo] = None
    client_ids: List[str] = []
    code_version: str


class AdminVerifyRequest(BaseModel):
    code: str


@router.post("/login", response_model=LoginResponse)
def login(req: LoginRequest, sb: Any = Depends(get_client)) -> LoginResponse:
    identity = resolve_password(req.password, client=sb)
    return LoginResponse(
        access_type=identity.access_type,
        client_info=identity.client_info,
        client_ids=identity.client_ids,
        code_version=current_code_version(client=sb),
    )


@router.get("/code-version")
def code_version(sb: Any = Depends(get_client)) -> Dict[str, Optional[str]]:
    return {"code_version": get_active_code_version(client=sb)}


@router.post("/admin/verify")
def admin_verify(req: AdminVerifyRequest, sb: Any = Depends(get_client)) -> Dict[str, bool]:
    verify_admin_code(req.code, client=sb)
    return {"ok": True}
