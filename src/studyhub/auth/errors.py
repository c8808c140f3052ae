"""Authentication errors with stable codes and display severity.

The identity provider reports failures as upper-case message strings
(``EMAIL_EXISTS``, ``INVALID_PASSWORD : ...``). These are mapped to the
``auth/*`` codes the web client understands.
"""

from typing import Literal

Severity = Literal["error", "warning"]

# provider message -> (code, http status)
PROVIDER_ERRORS: dict[str, tuple[str, int]] = {
    "EMAIL_EXISTS": ("auth/email-already-in-use", 409),
    "INVALID_LOGIN_CREDENTIALS": ("auth/invalid-credential", 401),
    "INVALID_PASSWORD": ("auth/invalid-credential", 401),
    "EMAIL_NOT_FOUND": ("auth/invalid-credential", 401),
    "INVALID_EMAIL": ("auth/invalid-email", 400),
    "MISSING_PASSWORD": ("auth/missing-password", 400),
    "WEAK_PASSWORD": ("auth/weak-password", 400),
    "USER_DISABLED": ("auth/user-disabled", 403),
    "TOO_MANY_ATTEMPTS_TRY_LATER": ("auth/too-many-requests", 429),
    "INVALID_ID_TOKEN": ("auth/invalid-id-token", 401),
    "TOKEN_EXPIRED": ("auth/invalid-id-token", 401),
    "USER_NOT_FOUND": ("auth/invalid-id-token", 401),
    "INVALID_IDP_RESPONSE": ("auth/invalid-idp-response", 401),
    "USER_CANCELLED": ("auth/popup-closed-by-user", 400),
    "OPERATION_NOT_ALLOWED": ("auth/operation-not-allowed", 403),
}

MESSAGES: dict[str, str] = {
    "auth/email-already-in-use": "An account with this email already exists.",
    "auth/invalid-credential": "Invalid email or password.",
    "auth/invalid-email": "Please enter a valid email address.",
    "auth/missing-password": "Please enter your password.",
    "auth/weak-password": "Password must be at least 6 characters.",
    "auth/user-disabled": "This account has been disabled.",
    "auth/too-many-requests": "Too many attempts. Please try again later.",
    "auth/invalid-id-token": "Your session has expired. Please sign in again.",
    "auth/invalid-idp-response": "The sign-in provider rejected the credential.",
    "auth/popup-closed-by-user": "Sign-in was cancelled.",
    "auth/cancelled-popup-request": "Sign-in was cancelled.",
    "auth/unsupported-provider": "This sign-in provider is not supported.",
    "auth/forbidden": "You do not have permission to do that.",
    "auth/network-request-failed": "Could not reach the authentication service.",
    "auth/internal-error": "Authentication failed. Please try again.",
}

STATUS_BY_CODE: dict[str, int] = {code: status for code, status in PROVIDER_ERRORS.values()}
STATUS_BY_CODE.update(
    {
        "auth/cancelled-popup-request": 400,
        "auth/unsupported-provider": 400,
        "auth/forbidden": 403,
        "auth/network-request-failed": 503,
        "auth/internal-error": 500,
    }
)

WARNING_CODES = frozenset(
    {"auth/invalid-credential", "auth/popup-closed-by-user", "auth/cancelled-popup-request"}
)


class AuthError(Exception):
    """Authentication or authorization failure."""

    def __init__(self, code: str, message: str | None = None):
        self.code = code
        self.message = message or MESSAGES.get(code, MESSAGES["auth/internal-error"])
        super().__init__(self.message)

    @property
    def severity(self) -> Severity:
        return "warning" if self.code in WARNING_CODES else "error"

    @property
    def status_code(self) -> int:
        return STATUS_BY_CODE.get(self.code, 400)

    @classmethod
    def from_provider_message(cls, provider_message: str) -> "AuthError":
        """Build from a provider message such as ``WEAK_PASSWORD : Password should be...``."""
        key = provider_message.split(":", 1)[0].strip()
        code, _status = PROVIDER_ERRORS.get(key, ("auth/internal-error", 500))
        return cls(code)
