"""Shared fixtures for torrentlite tests."""

from pathlib import Path

import pytest

FIXTURES = Path(__file__).parent / "fixtures"

# sample.torrent: single file, three pieces, canonical encoding throughout
SAMPLE_INFO_HASH = "012512441d93b8af48e42688576283f9d398c429"
SAMPLE_PIECE_HASHES = [
    "45a8fd2f856a71fb0a2aa6e85ac0334da36c2e0b",
    "448715eeb1c698e9a170fbe54b92461e0018a3d7",
    "3a8b78cb6621bf27241b44e204a1f9de1a52095f",
]
SAMPLE_TRACKER_URL = "http://tracker.example.org/announce"


@pytest.fixture
def sample_torrent_path() -> Path:
    return FIXTURES / "sample.torrent"


@pytest.fixture
def sample_torrent_bytes(sample_torrent_path) -> bytes:
    return sample_torrent_path.read_bytes()


@pytest.fixture
def peer_id() -> bytes:
    return b"-TL0100-abcdefghijkl"
