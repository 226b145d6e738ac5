"""Tests for ClientConfig and environment overrides."""

import logging

import pytest
from rich.console import Console

from torrentlite.config import PEER_ID_PREFIX, ClientConfig, generate_peer_id
from torrentlite.errors import ConfigurationError
from torrentlite.logging_config import setup_logging

pytestmark = [pytest.mark.unit]


class TestClientConfig:
    def test_defaults(self):
        config = ClientConfig.from_env({})

        assert config.listen_port == 6881
        assert config.tracker_timeout == 10.0
        assert config.tracker_retries == 2
        assert config.log_level == "WARNING"
        assert config.peer_id.startswith(PEER_ID_PREFIX)

    def test_generated_peer_ids_are_20_bytes(self):
        assert len(generate_peer_id()) == 20

    def test_env_overrides(self):
        config = ClientConfig.from_env(
            {
                "TORRENTLITE_LISTEN_PORT": "51413",
                "TORRENTLITE_PEER_ID": "-TL0100-000000000000",
                "TORRENTLITE_TRACKER_TIMEOUT": "2.5",
                "TORRENTLITE_TRACKER_RETRIES": "0",
                "TORRENTLITE_HANDSHAKE_TIMEOUT": "1",
                "TORRENTLITE_LOG_LEVEL": "debug",
            }
        )

        assert config.listen_port == 51413
        assert config.peer_id == b"-TL0100-000000000000"
        assert config.tracker_timeout == 2.5
        assert config.tracker_retries == 0
        assert config.handshake_timeout == 1.0
        assert config.log_level == "DEBUG"

    @pytest.mark.parametrize(
        "name, value",
        [
            ("TORRENTLITE_LISTEN_PORT", "http"),
            ("TORRENTLITE_LISTEN_PORT", "70000"),
            ("TORRENTLITE_PEER_ID", "too-short"),
            ("TORRENTLITE_PEER_ID", "-TL0100-00000000000é"),
            ("TORRENTLITE_TRACKER_TIMEOUT", "0"),
            ("TORRENTLITE_TRACKER_RETRIES", "-1"),
            ("TORRENTLITE_LOG_LEVEL", "chatty"),
        ],
    )
    def test_invalid_env(self, name, value):
        with pytest.raises(ConfigurationError):
            ClientConfig.from_env({name: value})


class TestSetupLogging:
    def test_installs_single_handler(self):
        console = Console(stderr=True)
        setup_logging("INFO", console=console)
        handler = setup_logging("DEBUG", console=console)

        logger = logging.getLogger("torrentlite")
        assert logger.handlers == [handler]
        assert logger.level == logging.DEBUG
