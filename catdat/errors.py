class CatDatError(Exception):
    """Base class for catdat-specific errors."""


# Lookup failures
class CatalogNotFoundError(CatDatError):
    pass


class EntryNotFoundError(CatDatError):
    pass


# Directory naming
class MalformedIdError(CatDatError):
    pass


# I/O and consistency
class ArchiveIOError(CatDatError):
    pass


class TruncatedDataError(ArchiveIOError):
    pass


class InvalidSourceError(CatDatError):
    pass


# pck layer
class PckError(CatDatError):
    pass
