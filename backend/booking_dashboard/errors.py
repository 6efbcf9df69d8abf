from fastapi import status

class BaseAppException(Exception):
    def __init__(self, code: str, message: str, http_status: int):
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)

class NotFoundError(BaseAppException):
    def __init__(self, code: str, message: str):
        super().__init__(code, message, status.HTTP_404_NOT_FOUND)

class ConflictError(BaseAppException):
    def __init__(self, code: str, message: str):
        super().__init__(code, message, status.HTTP_409_CONFLICT)

class ValidationAppError(BaseAppException):
    def __init__(self, code: str, message: str):
        super().__init__(code, message, status.HTTP_400_BAD_REQUEST)

class UnauthorizedError(BaseAppException):
    def __init__(self, message: str = "login required"):
        super().__init__("UNAUTHORIZED", message, status.HTTP_401_UNAUTHORIZED)

class CalendarProviderError(BaseAppException):
    """Calendar vendor call failed; ``vendor_status`` is the upstream HTTP status if any."""

    def __init__(self, message: str, vendor_status: int | None = None):
        self.vendor_status = vendor_status
        super().__init__("CALENDAR_PROVIDER_ERROR", message, status.HTTP_502_BAD_GATEWAY)

class InternalServerError(BaseAppException):
    def __init__(self, message: str = "internal error"):
        super().__init__("INTERNAL_ERROR", message, status.HTTP_500_INTERNAL_SERVER_ERROR)
