"""Filename sanitization for storage keys."""

import re

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")

MAX_FILENAME_LENGTH = 255


def sanitize_filename(filename: str) -> str:
    """Turn an untrusted client filename into a safe storage key.

    Strips surrounding whitespace, removes every ``..`` sequence and replaces
    each character outside ``[A-Za-z0-9._-]`` with ``_``. Never fails, and
    applying it twice gives the same result as applying it once.

    Args:
        filename: Filename as supplied by the client

    Returns:
        Sanitized filename, possibly empty
    """
    safe = filename.strip()
    while ".." in safe:
        safe = safe.replace("..", "")
    safe = _UNSAFE_CHARS.sub("_", safe)
    return safe[:MAX_FILENAME_LENGTH]
