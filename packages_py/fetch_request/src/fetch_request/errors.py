from typing import Optional


class FetchRequestError(Exception):
    """Base exception for fetch-request errors."""
    pass


class BuildError(FetchRequestError):
    """Error surfaced by a terminal call before the request is sent."""
    pass


class ConfigurationError(BuildError):
    """
    Raised by a configuration call on the builder.

    The builder latches it instead of raising; build/do raise the same
    instance later.
    """
    def __init__(self, operation: str, cause: Exception):
        msg = f"{operation} failed: {cause}"
        super().__init__(msg)
        self.operation = operation
        self.cause = cause
        self.__cause__ = cause


class BuilderConsumedError(BuildError):
    def __init__(self, operation: str):
        msg = f"Cannot call '{operation}': builder was already consumed by a terminal call"
        super().__init__(msg)
        self.operation = operation


class MultipartEncodeError(FetchRequestError):
    def __init__(self, field_name: str, cause: Exception, filename: Optional[str] = None):
        target = f"file '{filename}' of field '{field_name}'" if filename else f"field '{field_name}'"
        msg = f"Could not encode {target}: {cause}"
        super().__init__(msg)
        self.field_name = field_name
        self.filename = filename
        self.cause = cause


class TransportError(FetchRequestError):
    """Connection or protocol level failure reported by a transport."""
    def __init__(self, message: str, cause: Optional[Exception] = None, attempt: Optional[int] = None):
        super().__init__(message)
        self.cause = cause
        self.attempt = attempt
