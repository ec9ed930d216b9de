"""
Argument validation for host commands

All checks run before a process is spawned. Any rejection raises
ValidationError with a human-readable reason.
"""

import ipaddress
import re
from typing import Union

from hostops.core.capabilities.exceptions import ValidationError

# Shell metacharacters that are never allowed in an argument
BLOCKED_CHARS = [';', '|', '&', '$', '>', '<', '`', '\n', '\r', '\x00']

MAX_PATH_LENGTH = 253
MAX_HOSTNAME_LENGTH = 253

HOSTNAME_LABEL = re.compile(r"^(?!-)[A-Za-z0-9-]{1,63}(?<!-)$")

# Branch/remote names: no leading dash, no '..', conservative charset
REF_PATTERN = re.compile(r"^(?!-)(?!.*\.\.)[A-Za-z0-9._/-]{1,200}$")


def validate_token(value: str, name: str = "argument") -> str:
    """Reject arguments carrying shell metacharacters"""
    for char in BLOCKED_CHARS:
        if char in value:
            printable = repr(char) if char in ('\n', '\r', '\x00') else f"'{char}'"
            raise ValidationError(f"{name} contains forbidden character {printable}")
    return value


def validate_path(path: str, name: str = "path") -> str:
    """
    Validate a path-like argument

    Rejects parent-directory segments, home-directory shortcuts, overlong
    values and shell metacharacters. An empty path means the current
    directory.

    Returns:
        The path to use ("." for empty input)
    """
    if path == "":
        return "."

    if len(path) > MAX_PATH_LENGTH:
        raise ValidationError(f"{name} exceeds {MAX_PATH_LENGTH} characters")

    if path.startswith("~"):
        raise ValidationError(f"{name} must not use the home directory shortcut: {path}")

    segments = re.split(r"[\\/]", path)
    if ".." in segments:
        raise ValidationError(f"{name} must not contain parent directory segments: {path}")

    validate_token(path, name)

    # Options smuggled as paths would change the command's meaning
    if path.startswith("-"):
        raise ValidationError(f"{name} must not start with '-': {path}")

    return path


def validate_hostname(host: str) -> str:
    """
    Validate a hostname or IP address

    Accepts IPv4/IPv6 literals and RFC 1123 hostnames (dot-separated labels
    of letters, digits and inner hyphens).
    """
    if not host:
        raise ValidationError("Invalid host format: host is empty")

    try:
        ipaddress.ip_address(host)
        return host
    except ValueError:
        pass

    if len(host) > MAX_HOSTNAME_LENGTH:
        raise ValidationError(f"Invalid host format: longer than {MAX_HOSTNAME_LENGTH} characters")

    labels = host[:-1].split(".") if host.endswith(".") else host.split(".")
    if not all(HOSTNAME_LABEL.match(label) for label in labels):
        raise ValidationError(f"Invalid host format: {host}")

    return host


def validate_ref(value: str, name: str) -> str:
    """Validate a git remote or branch name"""
    if not REF_PATTERN.match(value):
        raise ValidationError(f"Invalid {name}: {value}")
    return value


def validate_number_range(
    value: Union[int, float],
    name: str,
    minimum: Union[int, float, None] = None,
    maximum: Union[int, float, None] = None,
) -> Union[int, float]:
    """Reject numeric arguments outside [minimum, maximum]"""
    if minimum is not None and value < minimum:
        raise ValidationError(f"{name} must be >= {minimum:g}, got {value}")
    if maximum is not None and value > maximum:
        raise ValidationError(f"{name} must be <= {maximum:g}, got {value}")
    return value
