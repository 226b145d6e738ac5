import asyncio
import json
import logging
import os
import sys

from .config import ClientConfig
from .encoding import decode_bencode, to_jsonable
from .errors import TorrentliteError
from .handshake import perform_handshake
from .logging_config import setup_logging
from .metainfo import get_torrent_info
from .peers import PeerAddress
from .tracker import announce_torrent

logger = logging.getLogger(__name__)

USAGE = """usage: torrentlite <command> [args]

commands:
  decode <bencoded-string>
  info <torrent-file>
  peers <torrent-file>
  handshake <torrent-file> <ip:port>"""

ARITY = {"decode": 1, "info": 1, "peers": 1, "handshake": 2}
USAGE_EXIT_CODE = 2


async def run(command: str, args: list[str], config: ClientConfig):
    match command:
        case "decode":
            # Hand the raw argv bytes to the decoder, non UTF-8 included
            bencoded_value = os.fsencode(args[0])

            decoded_value, _bytes_read = decode_bencode(bencoded_value)
            print(json.dumps(to_jsonable(decoded_value)))
        case "info":
            torrent_info = get_torrent_info(args[0])

            print(f"Tracker URL: {torrent_info.tracker_url}")
            print(f"Length: {torrent_info.content_length}")
            print(f"Info Hash: {torrent_info.info_hash.hex()}")
            print(f"Piece Length: {torrent_info.piece_length}")

            print("Piece Hashes:")
            for piece_hash in torrent_info.piece_hashes:
                print(piece_hash.hex())
        case "peers":
            torrent_info = get_torrent_info(args[0])
            response = announce_torrent(torrent_info, config)
            logger.info(
                "Tracker returned %d peers, re-announce in %ds",
                len(response.peers),
                response.interval,
            )
            for peer in response.peers:
                print(peer)
        case "handshake":
            torrent_info = get_torrent_info(args[0])
            peer = PeerAddress.parse(args[1])

            peer_id = await perform_handshake(
                torrent_info.info_hash,
                peer,
                config.peer_id,
                timeout=config.handshake_timeout,
            )
            print(f"Peer ID: {peer_id.hex()}")


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if not argv or argv[0] not in ARITY or len(argv) - 1 != ARITY[argv[0]]:
        print(USAGE, file=sys.stderr)
        return USAGE_EXIT_CODE
    command, args = argv[0], argv[1:]

    try:
        config = ClientConfig.from_env()
        setup_logging(config.log_level)
        asyncio.run(run(command, args, config))
    except TorrentliteError as e:
        logger.debug("%s failed", command, exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return e.exit_code
    except OSError as e:
        logger.debug("%s failed", command, exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


def cli():
    sys.exit(main())


if __name__ == "__main__":
    cli()
