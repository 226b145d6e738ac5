from dataclasses import dataclass
from ipaddress import AddressValueError, IPv4Address

from .errors import PeerFormatError

COMPACT_PEER_LENGTH = 6


@dataclass(frozen=True)
class PeerAddress:
    ip: IPv4Address
    port: int

    def __str__(self) -> str:
        return f"{self.ip}:{self.port}"

    @classmethod
    def parse(cls, peer: str) -> "PeerAddress":
        peer_address, sep, peer_port = peer.rpartition(":")
        if not sep or not (peer_port.isascii() and peer_port.isdigit()):
            raise PeerFormatError(f"Expected <ip>:<port>, got {peer!r}")
        if len(peer_port) > 5 or int(peer_port) > 0xFFFF:
            raise PeerFormatError(f"Port out of range in {peer!r}")
        port = int(peer_port)
        try:
            ip = IPv4Address(peer_address)
        except AddressValueError as e:
            raise PeerFormatError(f"Invalid IPv4 address in {peer!r}") from e
        return cls(ip=ip, port=port)


def decode_compact_peers(blob: bytes) -> tuple[PeerAddress, ...]:
    if len(blob) % COMPACT_PEER_LENGTH != 0:
        raise PeerFormatError(
            f"Compact peer list length is not a multiple of {COMPACT_PEER_LENGTH}",
            {"length": len(blob)},
        )

    peers = []
    for pos in range(0, len(blob), COMPACT_PEER_LENGTH):
        # First 4 bytes compose the peer's address
        ip = IPv4Address(blob[pos : pos + 4])
        # Next 2 bytes represent the peer's port
        port = int.from_bytes(blob[pos + 4 : pos + 6], "big")
        peers.append(PeerAddress(ip=ip, port=port))

    return tuple(peers)
