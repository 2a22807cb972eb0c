class FastProbeError(Exception):
    """Base class for every error raised by fastprobe."""


class InvalidEndpoint(FastProbeError):
    """Malformed endpoint URL, or the host was unreachable before any bytes were read."""


class TransferFailure(FastProbeError):
    """A download worker failed mid-probe."""


class InvalidInput(FastProbeError, ValueError):
    """Arguments that cannot produce a meaningful result."""


class EndpointSourceError(FastProbeError):
    """The endpoint configuration could not be loaded."""


class InvalidToken(EndpointSourceError):
    """The configuration service rejected the API token."""
