"""
Custom exception classes
"""
from fastapi import HTTPException


class BadRequestError(HTTPException):
    """Guard check failed on the request body or query"""
    def __init__(self, detail: str):
        super().__init__(status_code=400, detail=detail)


class NotAuthenticatedError(HTTPException):
    """Raised when no valid access token accompanies the request"""
    def __init__(self, detail: str = "Not authenticated"):
        super().__init__(status_code=401, detail=detail)


class AdminRequiredError(HTTPException):
    """Raised when caller is not an active chamber administrator"""
    def __init__(self):
        super().__init__(
            status_code=403,
            detail="Administrator access required"
        )


class UnauthorizedError(HTTPException):
    """Raised when user doesn't belong to the resource's chamber"""
    def __init__(self, detail: str = "You don't have permission to access this resource"):
        super().__init__(status_code=403, detail=detail)


class NotFoundError(HTTPException):
    """Raised when a row doesn't exist (or is soft-deleted)"""
    def __init__(self, what: str):
        super().__init__(status_code=404, detail=f"{what} not found")


class CaseNotFoundError(NotFoundError):
    def __init__(self):
        super().__init__("Case")


class DocumentNotFoundError(NotFoundError):
    def __init__(self):
        super().__init__("Document")


class UploadFailedError(HTTPException):
    """Raised when storage upload fails"""
    def __init__(self, reason: str = "Unknown error"):
        super().__init__(
            status_code=500,
            detail=f"Upload failed: {reason}"
        )


class BroadcastError(HTTPException):
    """Raised when the realtime provider rejects a broadcast"""
    def __init__(self, details: str = ""):
        super().__init__(status_code=500, detail="Failed to broadcast event")
        self.details = details


class AuthProviderError(Exception):
    """Auth admin API call failed; carries the provider's message"""
    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
