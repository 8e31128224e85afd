"""Auth service layer: orchestration over the stores plus the error taxonomy."""
from services.auth_service import AuthResult, AuthService, Identity
from services import errors

__all__ = ["AuthResult", "AuthService", "Identity", "errors"]
