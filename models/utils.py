"""Utility functions for Hue Sync.

This module contains helper functions used across the application:
- log_debug / log_error: Diagnostic output through click
- set_debug: Toggle debug output at runtime
- device_type: Bounded devicetype string for user registration
- similarity_score: Fuzzy string matching for command suggestions
"""

import os
import socket
import time

import click

APP_TAG = 'hue-sync'
MAX_HOSTNAME_LENGTH = 10

_debug = os.getenv('HUE_SYNC_DEBUG', '') not in ('', '0', 'false', 'False')


def set_debug(enabled: bool):
    """Enable or disable debug output."""
    global _debug
    _debug = enabled


def is_debug() -> bool:
    return _debug


def log_debug(msg: str):
    """Print a debug message to stderr when debug output is enabled."""
    if _debug:
        click.echo(f"[{time.strftime('%H:%M:%S')}] {msg}", err=True)


def log_error(msg: str):
    """Print an error message to stderr."""
    click.secho(f"[{time.strftime('%H:%M:%S')}] {msg}", fg='red', err=True)


def device_type(hostname: str | None = None) -> str:
    """Build the devicetype used when registering with the bridge.

    Only the first label of the host name is used, trimmed to 10 characters
    to keep the bridge username short.

    Args:
        hostname: Host name to use (defaults to the local host name)

    Returns:
        String like 'hue-sync#myhost'
    """
    if hostname is None:
        hostname = socket.gethostname()
    hostname = hostname.split('.')[0][:MAX_HOSTNAME_LENGTH]
    return f"{APP_TAG}#{hostname}"


def similarity_score(s1: str, s2: str) -> int:
    """Calculate similarity score between two strings.

    Args:
        s1: First string to compare
        s2: Second string to compare

    Returns:
        Similarity score:
        - 100: Exact match (case-insensitive)
        - 80: Prefix match
        - 60: Substring match
        - 0-50: Character sequence match (proportional to matching characters)
        - 0: No match
    """
    s1_lower = s1.lower()
    s2_lower = s2.lower()

    if s1_lower == s2_lower:
        return 100

    if s2_lower.startswith(s1_lower) or s1_lower.startswith(s2_lower):
        return 80

    if s1_lower in s2_lower or s2_lower in s1_lower:
        return 60

    # Character sequence matching
    matches = 0
    j = 0
    for char in s1_lower:
        while j < len(s2_lower):
            if s2_lower[j] == char:
                matches += 1
                j += 1
                break
            j += 1

    if matches > 0:
        score = int((matches / max(len(s1_lower), len(s2_lower))) * 50)
        return score if score > 20 else 0

    return 0
