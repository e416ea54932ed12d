"""Tests for the confstack command-line tool."""

from __future__ import annotations

from unittest.mock import patch

import pytest
import yaml

from confstack.encryption import SecretDecryptor, generate_key

# ---------------------------------------------------------------------------
# setup_logging
# ---------------------------------------------------------------------------


class TestSetupLogging:
    def test_removes_default_handler_and_adds_stderr(self):
        """setup_logging configures loguru with the correct level."""
        from confstack.__main__ import setup_logging

        with patch("confstack.__main__.logger") as mock_logger, patch.dict("os.environ", {}, clear=True):
            setup_logging(verbose=False)
            mock_logger.remove.assert_called_once()
            mock_logger.add.assert_called_once()
            assert mock_logger.add.call_args[1]["level"] == "INFO"

    def test_verbose_sets_debug_level(self):
        from confstack.__main__ import setup_logging

        with patch("confstack.__main__.logger") as mock_logger:
            setup_logging(verbose=True)
            assert mock_logger.add.call_args[1]["level"] == "DEBUG"

    def test_log_level_env(self):
        from confstack.__main__ import setup_logging

        with patch("confstack.__main__.logger") as mock_logger, patch.dict("os.environ", {"LOG_LEVEL": "warning"}):
            setup_logging()
            assert mock_logger.add.call_args[1]["level"] == "WARNING"

    def test_unknown_log_level_ignored(self):
        from confstack.__main__ import setup_logging

        with patch("confstack.__main__.logger") as mock_logger, patch.dict("os.environ", {"LOG_LEVEL": "chatty"}):
            setup_logging()
            assert mock_logger.add.call_args[1]["level"] == "INFO"

    def test_intercepts_dotenv_logger(self):
        import logging

        from confstack.__main__ import InterceptHandler, setup_logging

        dotenv_logger = logging.getLogger("dotenv")
        saved = (dotenv_logger.handlers[:], dotenv_logger.propagate, dotenv_logger.level)
        try:
            with patch("confstack.__main__.logger"):
                setup_logging(verbose=True)
            assert [type(h) for h in dotenv_logger.handlers] == [InterceptHandler]
            assert dotenv_logger.propagate is False
            assert dotenv_logger.level == logging.DEBUG
        finally:
            dotenv_logger.handlers, dotenv_logger.propagate = saved[0], saved[1]
            dotenv_logger.setLevel(saved[2])

    def test_braces_not_escaped(self):
        from confstack.__main__ import setup_logging

        with patch("confstack.__main__.logger") as mock_logger:
            setup_logging()
            assert "filter" not in mock_logger.add.call_args[1]


# ---------------------------------------------------------------------------
# commands
# ---------------------------------------------------------------------------


@pytest.fixture
def run():
    from confstack.__main__ import main

    def _run(*argv: str) -> int:
        with patch("confstack.__main__.setup_logging"):
            return main(list(argv))

    return _run


class TestCommands:
    def test_keygen(self, run, capsys):
        assert run("keygen") == 0
        key = capsys.readouterr().out.strip()
        assert SecretDecryptor(key).enabled

    def test_encrypt_then_decrypt(self, run, capsys, config_dir, secret_key):
        # Arrange
        src = config_dir / "prod-secrets.yaml"
        src.write_text("password: hunter2\n")

        # Act
        with patch.dict("os.environ", {"SECRETS_ENCRYPTION_KEY": secret_key}):
            assert run("encrypt", str(src)) == 0
            assert run("decrypt", str(config_dir / "prod-secrets.yaml.enc")) == 0

        # Assert
        assert capsys.readouterr().out == "password: hunter2\n"

    def test_decrypt_to_file(self, run, config_dir, secret_key, write_encrypted):
        enc = write_encrypted(config_dir / "dev-secrets.env.enc", "A=1\n")
        out = config_dir / "plain.env"
        with patch.dict("os.environ", {"SECRETS_ENCRYPTION_KEY": secret_key}):
            assert run("decrypt", str(enc), "-o", str(out)) == 0
        assert out.read_text() == "A=1\n"

    def test_decrypt_wrong_key_exits_1(self, run, config_dir, write_encrypted):
        enc = write_encrypted(config_dir / "dev-secrets.env.enc", "A=1\n")
        with patch.dict("os.environ", {"SECRETS_ENCRYPTION_KEY": generate_key()}):
            assert run("decrypt", str(enc)) == 1

    def test_encrypt_without_key_exits_1(self, run, config_dir):
        src = config_dir / "dev-secrets.yaml"
        src.write_text("a: 1\n")
        with patch.dict("os.environ", {}, clear=True):
            assert run("encrypt", str(src)) == 1

    def test_show(self, run, capsys, config_dir):
        (config_dir / "default.yaml").write_text("server:\n  port: 80\n")
        environ = {"CONFIG_DIR": str(config_dir), "APP__SERVER__HOSTS": "a,b"}
        with patch.dict("os.environ", environ, clear=True):
            assert run("show", "--prefix", "app", "-l", "server.hosts") == 0
        assert yaml.safe_load(capsys.readouterr().out) == {"server": {"port": 80, "hosts": ["a", "b"]}}

    def test_show_invalid_environment_exits_1(self, run, config_dir):
        with patch.dict("os.environ", {"CONFIG_DIR": str(config_dir), "ENV": "qa"}, clear=True):
            assert run("show") == 1
