"""Custom exception hierarchy for codevec."""


class CodeVecError(Exception):
    """Base exception for all codevec errors."""


class StoreUnavailableError(CodeVecError):
    """Raised when the durable store location cannot be created or opened."""


class StorageError(CodeVecError):
    """Raised on read/write failures against an opened store."""


class DimensionMismatchError(CodeVecError):
    """Raised when a vector's length differs from the index dimension."""


class VectorCodecError(CodeVecError):
    """Raised when a vector blob cannot be decoded."""
