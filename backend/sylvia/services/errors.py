class NotFoundError(Exception):
    """Raised when a row the caller asked for does not exist (or is not visible to them)."""
    pass


class ConflictError(Exception):
    """Raised when a write would violate a uniqueness or membership rule."""
    pass


class AlreadyInLibraryError(ConflictError):
    """Raised when a book already in the library is added to the wishlist."""
    pass


class InvalidInputError(Exception):
    pass
