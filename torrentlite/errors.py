"""Exception hierarchy for torrentlite.

Every error raised on purpose by the library derives from TorrentliteError,
and each family carries the exit code the CLI reports for it.
"""

from typing import Any


class TorrentliteError(Exception):
    """Base exception for all torrentlite errors."""

    exit_code = 1

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message


class BencodeSyntaxError(TorrentliteError):
    """Malformed bencode input."""

    exit_code = 3


class MetainfoSchemaError(TorrentliteError):
    """Metainfo dictionary is missing a field or has one of the wrong type."""

    exit_code = 4


class InfoHashMismatchError(TorrentliteError):
    """Re-encoding the info dictionary did not round-trip (an encoder bug)."""

    exit_code = 5


class NetworkError(TorrentliteError):
    """Transport-level failure talking to a tracker or a peer."""

    exit_code = 6


class ProtocolError(TorrentliteError):
    """The remote side answered, but not the way the protocol says it should."""

    exit_code = 7


class TrackerProtocolError(ProtocolError):
    """Bad tracker HTTP status or announce response body."""


class HandshakeError(ProtocolError):
    """Peer handshake reply is malformed or for another torrent."""


class PeerFormatError(TorrentliteError):
    """Compact peer blob or ip:port text could not be decoded."""

    exit_code = 8


class ConfigurationError(TorrentliteError):
    """Invalid configuration value."""

    exit_code = 9
