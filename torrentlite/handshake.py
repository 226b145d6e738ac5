import asyncio
import logging

from .errors import HandshakeError, NetworkError
from .peers import PeerAddress

logger = logging.getLogger(__name__)

PROTOCOL_STRING = b"BitTorrent protocol"
RESERVED_BYTES_LENGTH = 8
HANDSHAKE_LENGTH = 1 + len(PROTOCOL_STRING) + RESERVED_BYTES_LENGTH + 20 + 20


def build_handshake(info_hash: bytes, peer_id: bytes) -> bytes:
    if len(info_hash) != 20 or len(peer_id) != 20:
        raise ValueError("info_hash and peer_id must both be 20 bytes")
    return (
        int.to_bytes(len(PROTOCOL_STRING), length=1, byteorder="big")
        + PROTOCOL_STRING
        + b"\x00" * RESERVED_BYTES_LENGTH
        + info_hash
        + peer_id
    )


def parse_handshake(data: bytes) -> tuple[bytes, bytes]:
    """Return ``(info_hash, peer_id)`` from a peer's handshake reply."""
    if len(data) != HANDSHAKE_LENGTH:
        raise HandshakeError(f"Handshake must be {HANDSHAKE_LENGTH} bytes, got {len(data)}")

    # Protocol string
    protocol_string_size = data[0]
    protocol_string = data[1 : protocol_string_size + 1]
    if protocol_string != PROTOCOL_STRING:
        raise HandshakeError(f"Unexpected protocol string: {protocol_string!r}")

    # Reserved bytes are extension flags; none are used here
    offset = protocol_string_size + 1 + RESERVED_BYTES_LENGTH
    return data[offset : offset + 20], data[offset + 20 :]


async def perform_handshake(
    info_hash: bytes, peer: PeerAddress, peer_id: bytes, timeout: float = 10.0
) -> bytes:
    """Exchange handshakes with ``peer`` and return the remote peer id."""
    message = build_handshake(info_hash, peer_id)

    logger.info("Performing handshake with peer %s", peer)
    try:
        reader, writer = await asyncio.wait_for(
            asyncio.open_connection(host=str(peer.ip), port=peer.port), timeout
        )
    except (OSError, asyncio.TimeoutError) as e:
        raise NetworkError(f"Could not connect to peer {peer}: {e!r}") from e

    try:
        writer.write(message)
        await asyncio.wait_for(writer.drain(), timeout)
        data = await asyncio.wait_for(reader.readexactly(HANDSHAKE_LENGTH), timeout)
    except asyncio.IncompleteReadError as e:
        raise NetworkError(
            f"Peer {peer} closed the connection after {len(e.partial)} bytes"
        ) from e
    except (OSError, asyncio.TimeoutError) as e:
        raise NetworkError(f"Handshake with peer {peer} failed: {e!r}") from e
    finally:
        writer.close()
        try:
            await writer.wait_closed()
        except OSError:
            logger.debug("Error while closing connection to %s", peer, exc_info=True)

    remote_info_hash, remote_peer_id = parse_handshake(data)
    if remote_info_hash != info_hash:
        raise HandshakeError(
            f"Peer {peer} answered for another torrent",
            {"info_hash": remote_info_hash.hex()},
        )

    logger.info("Handshake succeeded with peer %s", peer)
    return remote_peer_id
