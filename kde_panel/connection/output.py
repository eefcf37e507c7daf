"""
Output parsing module for the kde CLI.
Turns the line-oriented and JSON output of kde commands into Python values.
"""

import re
import json
import logging
from typing import Dict, List

logger = logging.getLogger(__name__)

_LINE_BREAK = re.compile(r"\r?\n")


class KdeError(RuntimeError):
    """Base error for everything that goes wrong while talking to kde."""


class KdeCommandError(KdeError):
    """
    Raised when a kde command exits with a non-zero code or cannot be started.

    The message is the command's stderr (or a generic failure text when stderr
    is empty) so it can be shown to the user verbatim.
    """

    def __init__(self, message: str, command: str = "", returncode: int = -1):
        super().__init__(message)
        self.command = command
        self.returncode = returncode


class KdeOutputError(KdeError):
    """Raised when kde output cannot be parsed."""


def parse_lines(output: str) -> List[str]:
    """
    Split newline separated output into names.

    Args:
        output: Raw command output

    Returns:
        List[str]: Non-blank lines, stripped, in their original order
    """
    if not output:
        return []
    return [line.strip() for line in _LINE_BREAK.split(output) if line.strip()]


def parse_status(output: str) -> Dict[str, str]:
    """
    Parse the output of `kde status json`.

    The command prints a JSON array of {"environment": ..., "status": ...}
    records. The result maps each environment name to its status.

    Args:
        output: Raw command output

    Returns:
        Dict[str, str]: Environment name to status
    """
    if not output or not output.strip():
        return {}

    try:
        records = json.loads(output)
    except json.JSONDecodeError as e:
        raise KdeOutputError(f"Invalid status JSON: {e}") from e

    if not isinstance(records, list):
        raise KdeOutputError("Invalid status JSON: expected an array of environments")

    status = {}
    for record in records:
        if not isinstance(record, dict) or "environment" not in record:
            logger.debug(f"Skipping status record without environment: {record!r}")
            continue
        status[str(record["environment"])] = record.get("status")

    return status
