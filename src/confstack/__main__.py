"""Secrets tool: generate keys, encrypt/decrypt secret files, print the resolved config."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

import yaml
from loguru import logger

from confstack import __version__
from confstack.builder import build_config
from confstack.core.errors import ConfstackError
from confstack.encryption import SecretDecryptor, generate_key

# Third-party loggers routed through loguru
_INTERCEPTED_LIBRARIES = ["dotenv"]


class InterceptHandler(logging.Handler):
    """Forward stdlib log records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.patch(
            lambda r: r.update(
                name=record.name,
                function=record.funcName,
                line=record.lineno,
            ),
        ).opt(exception=record.exc_info).log(level, record.getMessage())


def _intercept_logging(level: str) -> None:
    """Route third-party library logs to loguru."""
    for lib in _INTERCEPTED_LIBRARIES:
        lib_logger = logging.getLogger(lib)
        lib_logger.handlers = [InterceptHandler()]
        lib_logger.propagate = False
        lib_logger.setLevel(level)


def setup_logging(verbose: bool = False) -> None:
    """Configure loguru on stderr.
    Level: verbose=True or LOG_LEVEL=DEBUG enables DEBUG; otherwise INFO."""
    level = "INFO"
    if verbose:
        level = "DEBUG"
    else:
        env_level = (os.environ.get("LOG_LEVEL") or "").upper()
        if env_level in ("DEBUG", "INFO", "WARNING", "ERROR"):
            level = env_level

    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format=("<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan> | {message}"),
    )
    _intercept_logging(level)


def _cmd_keygen(args: argparse.Namespace) -> int:
    print(generate_key())
    return 0


def _cmd_encrypt(args: argparse.Namespace) -> int:
    SecretDecryptor.from_env().encrypt_file(args.src, args.output)
    return 0


def _cmd_decrypt(args: argparse.Namespace) -> int:
    data = SecretDecryptor.from_env().decrypt_strict(args.src)
    if args.output is None:
        sys.stdout.buffer.write(data)
    else:
        args.output.write_bytes(data)
        logger.info("Decrypted {} -> {}", args.src, args.output)
    return 0


def _cmd_show(args: argparse.Namespace) -> int:
    tree = build_config(args.prefix, args.list_key)
    sys.stdout.write(yaml.safe_dump(tree.to_dict(), sort_keys=True))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="confstack", description="Layered config and secrets tool")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    keygen = sub.add_parser("keygen", help="Print a new SECRETS_ENCRYPTION_KEY")
    keygen.set_defaults(func=_cmd_keygen)

    encrypt = sub.add_parser("encrypt", help="Encrypt a secrets file (writes SRC.enc by default)")
    encrypt.add_argument("src", type=Path)
    encrypt.add_argument("--output", "-o", type=Path, default=None)
    encrypt.set_defaults(func=_cmd_encrypt)

    decrypt = sub.add_parser("decrypt", help="Decrypt a secrets file (stdout by default)")
    decrypt.add_argument("src", type=Path)
    decrypt.add_argument("--output", "-o", type=Path, default=None)
    decrypt.set_defaults(func=_cmd_decrypt)

    show = sub.add_parser("show", help="Print the resolved config as YAML")
    show.add_argument("--prefix", "-p", default=None, help="Environment variable prefix")
    show.add_argument(
        "--list-key",
        "-l",
        action="append",
        default=[],
        help="Dotted key parsed as a comma-separated list (repeatable)",
    )
    show.set_defaults(func=_cmd_show)
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entrypoint."""
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)
    try:
        return args.func(args)
    except ConfstackError as exc:
        logger.error("{}", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
