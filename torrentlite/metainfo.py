import logging
from dataclasses import dataclass, field
from functools import cached_property
from hashlib import sha1

from .encoding import BencodeValue, decode_bencode, encode_bencode
from .errors import BencodeSyntaxError, InfoHashMismatchError, MetainfoSchemaError

logger = logging.getLogger(__name__)

PIECE_HASH_LENGTH = 20


@dataclass(frozen=True)
class TorrentInfo:
    tracker_url: str
    content_length: int
    piece_length: int
    pieces: bytes
    name: str | None = None
    # The decoded "info" dictionary exactly as read, kept for hashing
    info: dict = field(default_factory=dict, repr=False, compare=False)

    @cached_property
    def piece_hashes(self) -> tuple[bytes, ...]:
        return tuple(
            self.pieces[i : i + PIECE_HASH_LENGTH]
            for i in range(0, len(self.pieces), PIECE_HASH_LENGTH)
        )

    @property
    def bencoded_info(self) -> bytes:
        return encode_bencode(self.info)

    @cached_property
    def info_hash(self) -> bytes:
        return compute_info_hash(self.info)


def compute_info_hash(info: BencodeValue) -> bytes:
    """SHA-1 of the canonical encoding of ``info``.

    The encoded bytes are decoded again and compared with ``info``; the
    digest is only worth anything if the encoding is the one every other
    client produces for the same value, so a mismatch is reported as an
    internal error rather than returning a bogus hash.
    """
    bencoded_info = encode_bencode(info)
    try:
        decoded, pos = decode_bencode(bencoded_info)
    except BencodeSyntaxError as e:
        raise InfoHashMismatchError(
            f"Encoded info dictionary does not decode: {e.message}"
        ) from e
    if decoded != info or pos != len(bencoded_info):
        raise InfoHashMismatchError("Encoded info dictionary does not round-trip")

    return sha1(bencoded_info).digest()


def parse_metainfo(content: BencodeValue) -> TorrentInfo:
    if not isinstance(content, dict):
        raise MetainfoSchemaError("Torrent file did not decode to a dictionary")

    announce = _require(content, b"announce", bytes, "announce")
    try:
        tracker_url = announce.decode()
    except UnicodeDecodeError as e:
        raise MetainfoSchemaError("announce is not valid UTF-8") from e

    info = _require(content, b"info", dict, "info")
    content_length = _require(info, b"length", int, "info.length")
    if content_length < 0:
        raise MetainfoSchemaError(
            "info.length must not be negative", {"length": content_length}
        )
    piece_length = _require(info, b"piece length", int, "info.piece length")
    if piece_length <= 0:
        raise MetainfoSchemaError(
            "info.piece length must be positive", {"piece length": piece_length}
        )
    pieces = _require(info, b"pieces", bytes, "info.pieces")
    if len(pieces) % PIECE_HASH_LENGTH != 0:
        raise MetainfoSchemaError(
            f"info.pieces length is not a multiple of {PIECE_HASH_LENGTH}",
            {"length": len(pieces)},
        )

    name = None
    if b"name" in info:
        raw_name = _require(info, b"name", bytes, "info.name")
        name = raw_name.decode(errors="replace")

    return TorrentInfo(
        tracker_url=tracker_url,
        content_length=content_length,
        piece_length=piece_length,
        pieces=pieces,
        name=name,
        info=info,
    )


def get_torrent_info(torrent_filename: str) -> TorrentInfo:
    with open(torrent_filename, "rb") as file:
        bencoded_content = file.read()
    logger.debug("Read %d bytes from %s", len(bencoded_content), torrent_filename)

    content, _bytes_read = decode_bencode(bencoded_content)
    return parse_metainfo(content)


def _require(container: dict, key: bytes, expected: type, label: str):
    if key not in container:
        raise MetainfoSchemaError(f"Missing required field {label}")
    value = container[key]
    # bencode has no booleans, but keep isinstance(True, int) out anyway
    if not isinstance(value, expected) or isinstance(value, bool):
        raise MetainfoSchemaError(
            f"Field {label} must be {_TYPE_NAMES[expected]}",
            {"got": type(value).__name__},
        )
    return value


_TYPE_NAMES = {
    bytes: "a byte string",
    int: "an integer",
    dict: "a dictionary",
}
