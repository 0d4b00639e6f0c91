"""Unit tests for CLI configuration parsing."""

from unittest.mock import patch

import pytest

from eth_oracle import main as cli

ENV_VARS = [
    "SLEEP_INTERVAL",
    "PRIVATE_KEY_FILE",
    "CHUNK_SIZE",
    "MAX_RETRIES",
    "NETWORK",
    "CONTRACT_ARTIFACT",
    "SOURCE",
    "PAIR",
    "NORMALIZATION_MODE",
    "EVENT_POLL_INTERVAL",
    "FETCH_TIMEOUT",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestParseArgs:
    """Test defaults, environment and validation."""

    def test_defaults(self) -> None:
        """Defaults match the documented configuration."""
        args = cli.parse_args([])

        assert args.sleep_interval == 2000
        assert args.private_key_file == "./oracle/oracle_private_key"
        assert args.chunk_size == 3
        assert args.max_retries == 5
        assert args.network == "localhost"
        assert args.source == "binance"
        assert args.pair == "eth/usd"
        assert args.normalization_mode == "strip"
        assert args.verbose is False

    def test_environment_overrides(self, monkeypatch) -> None:
        """Environment variables replace the defaults."""
        monkeypatch.setenv("SLEEP_INTERVAL", "500")
        monkeypatch.setenv("CHUNK_SIZE", "10")
        monkeypatch.setenv("MAX_RETRIES", "2")
        monkeypatch.setenv("PRIVATE_KEY_FILE", "/keys/oracle")
        monkeypatch.setenv("SOURCE", "Kraken")

        args = cli.parse_args([])

        assert args.sleep_interval == 500
        assert args.chunk_size == 10
        assert args.max_retries == 2
        assert args.private_key_file == "/keys/oracle"
        assert args.source == "kraken"

    def test_cli_beats_environment(self, monkeypatch) -> None:
        """Flags take precedence over environment variables."""
        monkeypatch.setenv("CHUNK_SIZE", "10")
        args = cli.parse_args(["--chunk-size", "4"])
        assert args.chunk_size == 4

    @pytest.mark.parametrize(
        "argv",
        [
            ["--chunk-size", "0"],
            ["--max-retries", "0"],
            ["--sleep-interval", "0"],
            ["--event-poll-interval", "0"],
            ["--source", "nowhere"],
            ["--normalization-mode", "round"],
        ],
    )
    def test_invalid_values(self, argv: list[str]) -> None:
        """Invalid values exit through parser.error."""
        with pytest.raises(SystemExit):
            cli.parse_args(argv)


class TestMain:
    """Test the entry point's error handling."""

    def test_startup_failure_exits_1(self) -> None:
        """A failure while building the oracle exits with status 1."""
        with patch.object(cli, "EthPriceOracle", side_effect=FileNotFoundError("no key")):
            with pytest.raises(SystemExit) as exc_info:
                cli.main([])
        assert exc_info.value.code == 1

    def test_interrupt_is_clean(self) -> None:
        """Ctrl-C ends the process without an error status."""
        with patch.object(cli, "EthPriceOracle"), patch.object(
            cli.asyncio, "run", side_effect=KeyboardInterrupt
        ) as mock_run:
            cli.main([])
        mock_run.assert_called_once()
