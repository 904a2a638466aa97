"""
Logging setup for the VelCoin wallet.

Two console formats:
  - **human** – coloured, single-line
  - **json**  – newline-delimited JSON

Every handler installed here carries a :class:`SecretFilter`, so private
keys of wallets loaded in this process never reach a log sink.

Usage:
    from velcoin_core.logging_config import setup_logging
    setup_logging(level="DEBUG", fmt="json", log_file="velcoin.log")
"""

from __future__ import annotations

import json
import logging
import re
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

REDACTED = "<redacted>"

_HEX64 = re.compile(r"(?<![0-9a-fA-F])(?:0x)?([0-9a-fA-F]{64})(?![0-9a-fA-F])")
_LABELLED_KEY = re.compile(
    r"""(private[_ ]?key["']?\s*[:=]\s*["']?)(?:0x)?[0-9a-fA-F]+""",
    re.IGNORECASE,
)

_known_secrets: set[str] = set()


def register_secret(private_key_hex: str) -> None:
    """Remember a private key so it is masked wherever it shows up in a log line."""
    if private_key_hex:
        _known_secrets.add(private_key_hex.lower())


def redact_secrets(text: str) -> str:
    """
    Mask private keys in *text*.

    Hex after a ``private_key`` label is always masked.  A bare 64-digit
    hex token is masked only when it is a registered key, so tx hashes
    of the same length stay readable.
    """
    text = _LABELLED_KEY.sub(lambda m: m.group(1) + REDACTED, text)
    if not _known_secrets:
        return text
    return _HEX64.sub(
        lambda m: REDACTED if m.group(1).lower() in _known_secrets else m.group(0),
        text,
    )


class SecretFilter(logging.Filter):
    """Rewrites each record's message with :func:`redact_secrets` applied."""

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            return True
        cleaned = redact_secrets(message)
        if cleaned != message:
            record.msg = cleaned
            record.args = None
        return True


class _RedactingFormatter(logging.Formatter):

    def formatException(self, ei) -> str:
        return redact_secrets(super().formatException(ei))


class _JSONFormatter(_RedactingFormatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1]:
            log_obj["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_obj, default=str)


class _HumanFormatter(_RedactingFormatter):

    COLOURS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[1;31m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        colour = self.COLOURS.get(record.levelname, "")
        ts = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        line = (
            f"{colour}{ts} [{record.levelname:<7}]{self.RESET} "
            f"{record.name}: {record.getMessage()}"
        )
        if record.exc_info and record.exc_info[1]:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(
    level: str = "INFO",
    fmt: str = "human",
    log_file: Optional[str] = None,
) -> None:
    """
    Configure the root logger.

    Parameters
    ----------
    level : str
        One of DEBUG, INFO, WARNING, ERROR, CRITICAL.
    fmt : str
        ``"human"`` or ``"json"``.
    log_file : str, optional
        Also write records to this file, always as JSON.
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(_JSONFormatter() if fmt == "json" else _HumanFormatter())
    console.addFilter(SecretFilter())
    root.addHandler(console)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(path))
        fh.setFormatter(_JSONFormatter())
        fh.addFilter(SecretFilter())
        root.addHandler(fh)
