"""Client configuration.

Defaults live on ClientConfig; ``ClientConfig.from_env`` overlays values from
``TORRENTLITE_*`` environment variables.
"""

import logging
import os
import random
from dataclasses import dataclass, field

from .errors import ConfigurationError

ENV_PREFIX = "TORRENTLITE_"
PEER_ID_PREFIX = b"-TL0100-"
PEER_ID_LENGTH = 20


def generate_peer_id() -> bytes:
    # Azureus-style: client tag and version, then random bytes
    return PEER_ID_PREFIX + random.randbytes(PEER_ID_LENGTH - len(PEER_ID_PREFIX))


@dataclass(frozen=True)
class ClientConfig:
    listen_port: int = 6881
    peer_id: bytes = field(default_factory=generate_peer_id)
    tracker_timeout: float = 10.0
    tracker_retries: int = 2
    handshake_timeout: float = 10.0
    log_level: str = "WARNING"

    def __post_init__(self):
        if len(self.peer_id) != PEER_ID_LENGTH:
            raise ConfigurationError(
                f"peer_id must be {PEER_ID_LENGTH} bytes",
                {"length": len(self.peer_id)},
            )
        if not 0 < self.listen_port <= 0xFFFF:
            raise ConfigurationError(f"listen_port out of range: {self.listen_port}")
        if self.tracker_timeout <= 0 or self.handshake_timeout <= 0:
            raise ConfigurationError("Timeouts must be positive")
        if self.tracker_retries < 0:
            raise ConfigurationError("tracker_retries must not be negative")
        if logging.getLevelName(self.log_level) == f"Level {self.log_level}":
            raise ConfigurationError(f"Unknown log level {self.log_level!r}")

    @classmethod
    def from_env(cls, environ=None) -> "ClientConfig":
        environ = os.environ if environ is None else environ
        overrides = {}
        for name, convert in _ENV_FIELDS.items():
            raw = environ.get(ENV_PREFIX + name.upper())
            if raw is None:
                continue
            try:
                overrides[name] = convert(raw)
            except (ValueError, UnicodeEncodeError) as e:
                raise ConfigurationError(
                    f"Invalid value for {ENV_PREFIX}{name.upper()}: {raw!r}"
                ) from e
        return cls(**overrides)


_ENV_FIELDS = {
    "listen_port": int,
    "peer_id": lambda raw: raw.encode("ascii"),
    "tracker_timeout": float,
    "tracker_retries": int,
    "handshake_timeout": float,
    "log_level": str.upper,
}
