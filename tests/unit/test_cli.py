"""Tests for the Typer CLI."""

from unittest.mock import patch

from typer.testing import CliRunner

from keygate.cli import app
from keygate.client import ClientVerifyResult
from keygate.keygen.generator import ALPHABET

runner = CliRunner()


class TestGenerateCommand:
    def test_prints_keys(self):
        result = runner.invoke(app, ["generate", "--count", "3", "--length", "20"])
        assert result.exit_code == 0
        keys = result.output.split()
        assert len(keys) == 3
        for key in keys:
            assert len(key) == 20
            assert all(ch in ALPHABET for ch in key)


class TestVerifyCommand:
    def test_valid(self):
        with patch("keygate.client.KeyStoreClient.verify",
                   return_value=ClientVerifyResult(valid=True, message="access granted", owner="alice")):
            result = runner.invoke(app, ["verify", "ABC"])
        assert result.exit_code == 0
        assert "alice" in result.output

    def test_invalid_exits_nonzero(self):
        with patch("keygate.client.KeyStoreClient.verify",
                   return_value=ClientVerifyResult(valid=False, message="invalid key")):
            result = runner.invoke(app, ["verify", "ABC"])
        assert result.exit_code == 1
        assert "invalid key" in result.output


class TestPingCommand:
    def test_unreachable(self):
        with patch("keygate.client.KeyStoreClient.ping", return_value=False):
            result = runner.invoke(app, ["ping", "--url", "http://127.0.0.1:1"])
        assert result.exit_code == 1

    def test_alive(self):
        with patch("keygate.client.KeyStoreClient.ping", return_value=True):
            result = runner.invoke(app, ["ping"])
        assert result.exit_code == 0
        assert "pong" in result.output
