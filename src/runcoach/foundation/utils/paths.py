"""Filesystem-safe path utilities."""

import hashlib
import re


def sanitize_filename(name: str) -> str:
    """Make a run identifier safe to use as a file name.

    Replaces characters that are invalid in filenames on common platforms
    (path separators, ``<>:"|?*``, control characters) with underscores.
    Run identifiers are frequently slash-separated paths, so ``a/b`` and
    ``a\\b`` both map to ``a_b``.

    Args:
        name: Original identifier

    Returns:
        Sanitized filename safe for filesystem

    Example:
        >>> sanitize_filename("Celeste/1-ForsakenCity_B")
        'Celeste_1-ForsakenCity_B'
    """
    sanitized = re.sub(r'[<>:"/\\|?*\x00-\x1f]', "_", name)

    # Leading/trailing dots and spaces are stripped on Windows
    sanitized = sanitized.strip(". ")

    return sanitized or "unnamed"


def run_file_name(run_id: str) -> str:
    """File stem for a run: readable prefix plus a hash of the exact id.

    Distinct run ids never share a stem, even when they sanitize to the
    same text (``celeste/1a`` and ``celeste_1a``).

    Example:
        >>> run_file_name("celeste/1a").startswith("celeste_1a-")
        True
    """
    digest = hashlib.sha256(run_id.encode("utf-8")).hexdigest()[:12]
    return f"{sanitize_filename(run_id)}-{digest}"
