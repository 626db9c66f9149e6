class DigestError(Exception):
    """Base class for news-digest errors."""


class FeedFetchError(DigestError):
    """Raised when a single feed cannot be fetched. Recovered per feed."""


class ConfigError(DigestError):
    """Raised when the configuration file cannot be loaded."""


class FeedFileError(DigestError):
    """Raised when a custom feed list is missing or malformed."""


class CacheWriteError(DigestError):
    """Raised when the dedup cache cannot be persisted."""
