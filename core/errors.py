"""
core/errors.py
--------------
Error taxonomy for the CMS Portfolio Service.

- ValidationError     : missing or malformed user input, raised before any network call.
- AuthenticationError : a secret matched nothing. Always one generic message.
- BackendError        : a Supabase table/RPC/storage call (or other remote call) failed.

Partial failures in bulk operations are not exceptions; they are reported
through `importer.report.ImportReport` and upload result lists.
"""

from __future__ import annotations

INVALID_PASSWORD_MESSAGE = "잘못된 비밀번호입니다."
INVALID_ADMIN_CODE_MESSAGE = "관리자 인증코드가 올바르지 않습니다."
AUTH_FAILURE_MESSAGE = "인증 중 오류가 발생했습니다. 다시 시도해주세요."


class CMSError(Exception):
    """Base class for every error raised by this project."""


class ValidationError(CMSError):
    pass


class AuthenticationError(CMSError):
    def __init__(self, message: str = INVALID_PASSWORD_MESSAGE):
        super().__init__(message)


class BackendError(CMSError):
    """Wraps a failed remote call; `action` names what was attempted."""

    def __init__(self, action: str, cause: BaseException | None = None):
        self.action = action
        self.cause = cause
        detail = f"{type(cause).__name__}: {cause}" if cause is not None else "no detail"
        super().__init__(f"{action} failed ({detail})")
