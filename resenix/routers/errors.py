from fastapi import HTTPException, status

from ..core.exceptions import ConflictError, InvalidInputError, NotFoundError, ResenixError


def http_error(exc: ResenixError) -> HTTPException:
    """Translate a service-layer error into the matching HTTP response."""
    if isinstance(exc, InvalidInputError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, ConflictError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
