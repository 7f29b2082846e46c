class RepositoryError(Exception):
    """Base repository error."""


class RepositoryUnavailableError(RepositoryError):
    """Raised when the database is unavailable or not configured."""


class RepositoryNotFoundError(RepositoryError):
    """Raised when the requested entity does not exist."""


class RepositoryConflictError(RepositoryError):
    """Raised when a unique key is already taken."""


class RepositoryValidationError(RepositoryError):
    """Raised when caller input is rejected before or during persistence."""


class RepositoryAuthenticationError(RepositoryError):
    """Raised when login credentials do not match a stored user."""
