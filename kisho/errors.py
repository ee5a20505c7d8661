"""Exception hierarchy shared by the engine, adapters and API."""


class KishoError(Exception):
    """Base class for all application errors."""


class ConfigurationError(KishoError):
    """Settings are missing/invalid or the app context is misused."""


class CatalogError(ConfigurationError):
    """The poem card catalog could not be loaded or failed validation."""


class StorageUnavailable(KishoError):
    """The score store backend could not complete a load or save."""


class ScoreRecordError(KishoError):
    """A stored score record is corrupt or has an unexpected shape."""
