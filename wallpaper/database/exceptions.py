"""
Database connection exceptions.

Both errors are startup or programming errors rather than per-request
failures: a request never sees them because the listener only starts once
the connection is open.
"""

from typing import Optional


class DatabaseError(Exception):
    """
    Base exception for all database connection errors.

    Catch this at the process entry point to treat every connection
    problem as fatal for startup.
    """

    pass


class DatabaseConnectionError(DatabaseError):
    """
    Raised when the single startup connection attempt fails.

    The attempt is not retried. The original driver error, if there was
    one, is chained as `__cause__`.

    Attributes:
        database: Name of the database the attempt targeted
        error_details: Short description of the underlying failure

    Example:
        >>> raise DatabaseConnectionError(
        ...     message="Could not connect to MongoDB",
        ...     database="universal_wallpaper",
        ...     error_details="ServerSelectionTimeoutError: timed out",
        ... )
    """

    def __init__(
        self,
        message: str,
        database: Optional[str] = None,
        error_details: Optional[str] = None,
    ):
        super().__init__(message)
        self.database = database
        self.error_details = error_details


class DatabaseNotConnectedError(DatabaseError):
    """Raised when the database handle is used before `open()` succeeded."""

    pass
