"""
Custom Exceptions for the EduConnect client
===========================================

Every failure the client can hit is one of these:

    ValidationFailed   local check failed, nothing was sent
    NetworkError       no response received
    ServerError        non-2xx response with a JSON body
    SessionExpired     401/403, the stored session is no longer valid
    ProtocolError      response body is not JSON (or lacks required data)

Usage:
    from educonnect.exceptions import EduConnectError, SessionExpired

    try:
        await client.student_me()
    except SessionExpired:
        session.clear()
    except EduConnectError as e:
        console.print(e.message)
"""

from typing import Optional, Any, Dict


class EduConnectError(Exception):
    """Base exception for all EduConnect client errors"""

    def __init__(
        self,
        message: str,
        code: str = "CLIENT_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# ============================================
# Local Errors
# ============================================

class ValidationFailed(EduConnectError):
    """Input rejected before any request was made"""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(
            message,
            code="VALIDATION_FAILED",
            details={"field": field} if field else {}
        )
        self.field = field


# ============================================
# Transport / Server Errors
# ============================================

class NetworkError(EduConnectError):
    """The backend could not be reached"""

    def __init__(self, message: str = "Cannot reach the EduConnect server. Check your connection and try again.",
                 url: Optional[str] = None):
        super().__init__(message, code="NETWORK_ERROR", details={"url": url} if url else {})


class ServerError(EduConnectError):
    """Backend answered with a non-2xx status"""

    def __init__(self, status_code: int, message: Optional[str] = None, path: Optional[str] = None):
        super().__init__(
            message or f"Server error ({status_code}). Please try again.",
            code="SERVER_ERROR",
            details={"status_code": status_code, "path": path}
        )
        self.status_code = status_code


class SessionExpired(ServerError):
    """Backend rejected the stored token (401/403)"""

    def __init__(self, status_code: int = 401, path: Optional[str] = None):
        super().__init__(status_code, "Your session has expired. Please log in again.", path)
        self.code = "SESSION_EXPIRED"


class ProtocolError(EduConnectError):
    """Backend answered with a body we cannot use"""

    def __init__(self, message: str = "Server did not respond correctly. Please try again later.",
                 status_code: Optional[int] = None):
        super().__init__(message, code="PROTOCOL_ERROR", details={"status_code": status_code})
        self.status_code = status_code


class MissingUserData(ProtocolError):
    """Response carried no user object with an _id"""

    def __init__(self, role: Optional[str] = None):
        who = (role or "user").capitalize()
        super().__init__(f"{who} data missing from server response.")
        self.code = "DATA_MISSING"
