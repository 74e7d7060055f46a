from fastapi import HTTPException, status


class CredentialsException(HTTPException):
    """Exception for invalid credentials."""

    def __init__(self, detail: str = "Could not validate credentials"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class NotFoundException(HTTPException):
    """Exception for resource not found."""

    def __init__(self, detail: str = "Resource not found"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
        )


class BadRequestException(HTTPException):
    """Exception for bad request."""

    def __init__(self, detail: str = "Bad request"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
        )


class LocationUnresolvedException(BadRequestException):
    """Exception for a location that cannot be turned into coordinates."""

    def __init__(self, detail: str = "Unable to resolve coordinates from location"):
        super().__init__(detail=detail)


class ConflictException(HTTPException):
    """Exception for resource conflict."""

    def __init__(self, detail: str = "Resource already exists"):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
        )


class UpstreamProviderException(HTTPException):
    """
    Exception for a failed call to the maps or language-model provider.

    The detail is always a generic message; provider errors are logged,
    not returned to the client.
    """

    def __init__(self, detail: str = "External provider request failed"):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
        )
