from http import HTTPStatus


class LibraryError(Exception):
    status = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(LibraryError, ValueError):
    status = HTTPStatus.BAD_REQUEST


class NotFoundError(LibraryError):
    status = HTTPStatus.NOT_FOUND


class ReportNotFoundError(NotFoundError):
    pass


class DuplicateKeyError(LibraryError):
    status = HTTPStatus.CONFLICT


class BookUnavailableError(LibraryError):
    status = HTTPStatus.CONFLICT


class StorageError(LibraryError):
    """Wraps any database failure that is not a key violation."""


class ConnectionConfigError(LibraryError):
    status = HTTPStatus.BAD_REQUEST
