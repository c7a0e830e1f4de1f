class RadioPadError(Exception):
    """Base class for errors reported to HTTP callers and the gamepad log."""


class ConfigError(RadioPadError):
    """Configuration file exists but cannot be read or parsed."""


class CatalogError(RadioPadError):
    """Station list could not be loaded at startup."""


class FetchFailed(CatalogError):
    pass


class ParseFailed(CatalogError):
    pass


class EmptyCatalog(CatalogError):
    pass


class SpawnFailed(RadioPadError):
    """The mpv process could not be started."""


class ChannelUnavailable(RadioPadError):
    """A control message could not be delivered to the mpv IPC socket."""


class DeviceReadFailed(RadioPadError):
    """The gamepad device could not be opened or stopped producing records."""
