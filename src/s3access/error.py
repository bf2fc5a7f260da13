"""
Exception classes for the s3access SDK
"""


class S3AccessException(Exception):
    """
    Base exception for all s3access SDK errors.
    """

    def __init__(self, message: str, status_code: int = None, error_code: str = None):
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code


class InvalidArgumentException(S3AccessException):
    """Thrown when a caller supplies a semantically invalid value."""

    def __init__(self, message: str):
        super().__init__(message, error_code="InvalidArgument")


class TransportException(S3AccessException):
    """Thrown when the store cannot be reached at all."""

    def __init__(self, message: str):
        super().__init__(message, error_code="TransportFailure")


class ServerException(S3AccessException):
    """Thrown when the server returns an error."""

    def __init__(self, message: str, status_code: int, error_code: str = None):
        super().__init__(message, status_code, error_code)


class ObjectNotFoundException(ServerException):
    """Thrown when an object is not found."""

    def __init__(self, bucket_name: str, object_name: str):
        super().__init__(
            f"Object '{object_name}' not found in bucket '{bucket_name}'.",
            status_code=404,
            error_code="NoSuchKey"
        )


class AccessDeniedException(ServerException):
    """Thrown when access is denied."""

    def __init__(self, message: str):
        super().__init__(
            message,
            status_code=403,
            error_code="AccessDenied"
        )
