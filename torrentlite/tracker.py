import logging
from dataclasses import dataclass
from urllib.parse import quote, urlencode

import requests

from .config import ClientConfig
from .encoding import decode_bencode_all
from .errors import BencodeSyntaxError, NetworkError, TrackerProtocolError
from .metainfo import TorrentInfo
from .peers import PeerAddress, decode_compact_peers

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrackerResponse:
    interval: int
    peers: tuple[PeerAddress, ...]
    min_interval: int | None = None
    complete: int | None = None
    incomplete: int | None = None
    warning_message: str | None = None


def build_announce_url(
    tracker_url: str,
    info_hash: bytes,
    peer_id: bytes,
    port: int,
    uploaded: int,
    downloaded: int,
    left: int,
    compact: bool = True,
) -> str:
    if len(info_hash) != 20:
        raise ValueError(f"info_hash must be 20 bytes, got {len(info_hash)}")
    if len(peer_id) != 20:
        raise ValueError(f"peer_id must be 20 bytes, got {len(peer_id)}")

    # info_hash and peer_id are raw bytes, so they get percent-encoded
    # byte by byte rather than as text
    query = urlencode(
        {
            "info_hash": info_hash,
            "peer_id": peer_id,
            "port": port,
            "uploaded": uploaded,
            "downloaded": downloaded,
            "left": left,
            "compact": 1 if compact else 0,
        },
        quote_via=quote,
    )
    separator = "&" if "?" in tracker_url else "?"
    return tracker_url + separator + query


def announce(
    tracker_url: str,
    info_hash: bytes,
    peer_id: bytes,
    port: int,
    uploaded: int,
    downloaded: int,
    left: int,
    compact: bool = True,
    config: ClientConfig | None = None,
) -> TrackerResponse:
    config = config or ClientConfig()
    url = build_announce_url(
        tracker_url, info_hash, peer_id, port, uploaded, downloaded, left, compact
    )

    attempts = config.tracker_retries + 1
    for attempt in range(1, attempts + 1):
        try:
            status_code, body = _get(url, config.tracker_timeout)
            break
        except NetworkError as e:
            if attempt == attempts:
                raise
            logger.warning(
                "Announce to %s failed (attempt %d/%d): %s",
                tracker_url,
                attempt,
                attempts,
                e,
            )

    if status_code >= 300:
        raise TrackerProtocolError(
            f"Tracker returned HTTP {status_code}",
            {"url": tracker_url, "status": status_code},
        )
    return parse_tracker_response(body)


def announce_torrent(
    torrent_info: TorrentInfo, config: ClientConfig | None = None
) -> TrackerResponse:
    config = config or ClientConfig()
    return announce(
        torrent_info.tracker_url,
        torrent_info.info_hash,
        config.peer_id,
        port=config.listen_port,
        uploaded=0,
        downloaded=0,
        left=torrent_info.content_length,
        config=config,
    )


def _get(url: str, timeout: float) -> tuple[int, bytes]:
    logger.debug("GET %s", url)
    try:
        with requests.get(url, timeout=timeout) as response:
            return response.status_code, response.content
    except requests.exceptions.RequestException as e:
        raise NetworkError(f"Could not reach tracker: {e}") from e


def parse_tracker_response(body: bytes) -> TrackerResponse:
    try:
        result = decode_bencode_all(body)
    except BencodeSyntaxError as e:
        raise TrackerProtocolError(
            f"Tracker response is not valid bencode: {e.message}"
        ) from e
    if not isinstance(result, dict):
        raise TrackerProtocolError("Tracker response is not a dictionary")

    if b"failure reason" in result:
        reason = result[b"failure reason"]
        if isinstance(reason, bytes):
            reason = reason.decode(errors="replace")
        raise TrackerProtocolError(f"Tracker refused announce: {reason}")

    if b"peers" not in result:
        raise TrackerProtocolError("Tracker response has no peers")
    peers = result[b"peers"]
    # Only the compact form is supported; the list-of-dicts form is refused
    if isinstance(peers, list):
        raise TrackerProtocolError("Non-compact peer lists are not supported")
    if not isinstance(peers, bytes):
        raise TrackerProtocolError("Tracker peers field is not a byte string")

    warning = result.get(b"warning message")
    if isinstance(warning, bytes):
        warning = warning.decode(errors="replace")
        logger.warning("Tracker warning: %s", warning)
    else:
        warning = None

    return TrackerResponse(
        interval=_optional_int(result, b"interval") or 0,
        peers=decode_compact_peers(peers),
        min_interval=_optional_int(result, b"min interval"),
        complete=_optional_int(result, b"complete"),
        incomplete=_optional_int(result, b"incomplete"),
        warning_message=warning,
    )


def _optional_int(result: dict, key: bytes) -> int | None:
    value = result.get(key)
    if value is None:
        return None
    if not isinstance(value, int):
        raise TrackerProtocolError(f"Tracker field {key.decode()} is not an integer")
    return value
