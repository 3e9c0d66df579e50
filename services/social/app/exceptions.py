"""Shared HTTP exception classes reused across all social service domains.

Services raise these directly; the app-level handler wraps them in the
standard error envelope. ``code`` is the machine-readable error code.
"""

from fastapi import HTTPException, status


class NotFoundError(HTTPException):
    code = "not_found"

    def __init__(self, resource: str = "Resource") -> None:
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource} not found.",
        )


class ForbiddenError(HTTPException):
    code = "forbidden"

    def __init__(self, detail: str = "You do not have permission to perform this action.") -> None:
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class ConflictError(HTTPException):
    code = "conflict"

    def __init__(self, detail: str = "Resource already exists.") -> None:
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class UnprocessableError(HTTPException):
    code = "unprocessable"

    def __init__(self, detail: str = "Unprocessable request.") -> None:
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
        )
