# novayra/errors.py
# Exceptions raised by services and decorators; the app factory turns them
# into the {"success": false, "message": ...} envelope.


class ApiError(Exception):
    status_code = 500
    default_message = "An internal server error occurred. Please try again later."

    def __init__(self, message=None, status_code=None, errors=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.errors = errors

    def to_dict(self):
        payload = {"success": False, "message": self.message}
        if self.errors:
            payload['errors'] = self.errors
        return payload


class ValidationError(ApiError):
    status_code = 400
    default_message = "Validation failed"


class AuthError(ApiError):
    status_code = 401
    default_message = "Authentication required"


class ForbiddenError(ApiError):
    status_code = 403
    default_message = "Forbidden"


class NotFoundError(ApiError):
    status_code = 404
    default_message = "Resource not found"


class ConflictError(ApiError):
    """Business-rule violation such as a duplicate email or insufficient stock."""
    status_code = 400
    default_message = "Request conflicts with the current state"


class InternalError(ApiError):
    status_code = 500
