# ==========================================================
#                  DOMAIN EXCEPTIONS
# ==========================================================
# Every error raised by the mlm services carries the HTTP status the
# app-level error handler answers with.


class MLMError(Exception):
    """Base exception for the MLM services"""
    status_code = 500

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self):
        return {"error": self.message}


class ValidationError(MLMError):
    status_code = 400


class AuthError(MLMError):
    status_code = 401


class PermissionDenied(MLMError):
    status_code = 403


class NotFoundError(MLMError):
    status_code = 404


class ConflictError(MLMError):
    status_code = 409


class RecruitWorkflowError(MLMError):
    """Recruit is not in a state that allows the requested step."""
    status_code = 409


class InvalidTransitionError(MLMError):
    status_code = 409


class InsufficientBalanceError(MLMError):
    status_code = 400
