"""Exception types raised by the game core."""


class AirPictionaryError(Exception):
    """Base class for errors raised by this package."""


class CatalogError(AirPictionaryError):
    """The word catalog is misconfigured (bad data file, unknown difficulty)."""


class EmptyCatalogError(CatalogError):
    """The word catalog has no entries to choose from."""


class RoundStateError(AirPictionaryError):
    """A round operation was called in a state that does not allow it."""
