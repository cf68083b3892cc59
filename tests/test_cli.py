"""
Unit tests for the command-line interface.
"""

import re
from pathlib import Path
from unittest.mock import Mock, patch

from click.testing import CliRunner

from totp_ticker.cli import EXIT_NO_PROVIDERS, cli

from conftest import RFC_SECRET_B32


CODE_LINE = re.compile(r"^(?P<name>.{25}) (?P<code>\d+)$")


class TestCLI:
    """Test cases for the CLI commands."""

    def setup_method(self) -> None:
        """Set up test fixtures."""
        self.runner = CliRunner()

    def test_cli_help(self) -> None:
        result = self.runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "Time-based one-time password ticker" in result.output

    def test_watch_help_describes_input(self) -> None:
        result = self.runner.invoke(cli, ["watch", "--help"])
        assert result.exit_code == 0
        assert "TAB separated" in " ".join(result.output.split())

    def test_watch_once_from_file(self, secrets_file: Path) -> None:
        result = self.runner.invoke(cli, ["watch", "-f", str(secrets_file), "--once", "-d", "8"])

        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert lines[0].endswith(" - Next in 30s")
        codes = [CODE_LINE.match(line) for line in lines[1:]]
        assert [m.group("name").rstrip() for m in codes if m] == ["rfc", "hello"]
        assert all(m and len(m.group("code")) == 8 for m in codes)

    def test_watch_once_from_stdin(self) -> None:
        result = self.runner.invoke(
            cli,
            ["watch", "--once", "-w", "10", "-i", "90"],
            input=f"rfc\t{RFC_SECRET_B32}\n",
        )

        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert lines[0].endswith(" - Next in 1m30s")
        assert re.match(r"^rfc {7} \d{6}$", lines[1])

    def test_watch_reads_file_from_env(self, secrets_file: Path) -> None:
        result = self.runner.invoke(
            cli,
            ["watch", "--once"],
            env={"TOTP_SECRETS_FILE": str(secrets_file)},
        )
        assert result.exit_code == 0
        assert "hello" in result.output

    def test_watch_missing_file(self, tmp_path: Path) -> None:
        result = self.runner.invoke(cli, ["watch", "-f", str(tmp_path / "nope.tsv"), "--once"])
        assert result.exit_code == 1
        assert "open:" in result.output

    def test_watch_no_valid_providers(self) -> None:
        result = self.runner.invoke(cli, ["watch", "--once"], input="only-one-field\n")
        assert result.exit_code == EXIT_NO_PROVIDERS
        assert "parse: invalid data provided" in result.output

    def test_watch_empty_input(self) -> None:
        result = self.runner.invoke(cli, ["watch", "--once"], input="")
        assert result.exit_code == EXIT_NO_PROVIDERS

    def test_watch_rejects_zero_digits(self, secrets_file: Path) -> None:
        result = self.runner.invoke(cli, ["watch", "-f", str(secrets_file), "-d", "0", "--once"])
        assert result.exit_code == 2
        assert "Configuration error" in result.output

    @patch("totp_ticker.cli.RefreshLoop")
    def test_watch_interrupted(self, mock_loop: Mock, secrets_file: Path) -> None:
        mock_loop.return_value.run.side_effect = KeyboardInterrupt
        result = self.runner.invoke(cli, ["watch", "-f", str(secrets_file)])
        assert result.exit_code == 130

    @patch("totp_ticker.cli.time")
    def test_code_command(self, mock_time: Mock, secrets_file: Path) -> None:
        mock_time.time.return_value = 59
        result = self.runner.invoke(cli, ["code", "rfc", "-f", str(secrets_file), "-d", "8"])
        assert result.exit_code == 0
        assert result.output == "94287082\n"

    @patch("totp_ticker.cli.time")
    def test_code_command_normalized_secret(self, mock_time: Mock) -> None:
        mock_time.time.return_value = 1111111109
        result = self.runner.invoke(
            cli,
            ["code", "rfc", "-d", "8", "--normalize-secrets"],
            input=f"rfc\t{RFC_SECRET_B32.lower()}\n",
        )
        assert result.exit_code == 0
        assert result.output == "07081804\n"

    def test_code_unknown_provider(self, secrets_file: Path) -> None:
        result = self.runner.invoke(cli, ["code", "missing", "-f", str(secrets_file)])
        assert result.exit_code == 1
        assert "unknown provider: missing" in result.output

    def test_watch_non_utf8_file(self, tmp_path: Path) -> None:
        path = tmp_path / "latin1.tsv"
        path.write_bytes(b"ok\tMZXW6===\nbad\t\xff\xfe\n")

        result = self.runner.invoke(cli, ["watch", "-f", str(path), "--once"])

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "read:" in result.output
