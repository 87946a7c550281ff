class ScoutError(Exception):
    """Base class for all issue-scout failures."""


class ConfigError(ScoutError):
    """A required startup input is missing. Fatal."""


class FetchError(ScoutError):
    """Fetching data from GitHub failed."""


class TransportError(FetchError):
    """Network failure, timeout, or non-2xx HTTP status."""


class DecodeError(FetchError):
    """The response body could not be decoded into the expected shape."""


class UpstreamDataError(FetchError):
    """GitHub answered, but reported errors for the query."""


class PersistenceError(ScoutError):
    """A store write or transaction failed and was rolled back."""
