"""Exception hierarchy shared by every FileBeam component"""


class FileBeamError(Exception):
    pass


class ConfigError(FileBeamError):
    """Raised when a configuration file or value is invalid."""


class FramingError(FileBeamError):
    """Raised when a transfer header is truncated or malformed."""


class TransferError(FileBeamError):
    """Raised when a session fails on local file or socket I/O."""


class ConnectError(TransferError):
    """Raised when the sender cannot reach the receiver."""


class TransferCancelled(FileBeamError):
    """Raised inside a session when its cancellation flag is set."""


class ListenerError(FileBeamError):
    """Raised when the receiver cannot start listening."""


class DiscoveryError(FileBeamError):
    """Raised when a discovery socket cannot be opened."""
