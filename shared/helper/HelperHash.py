"""Content fingerprinting used for change detection and chunk identity."""

import hashlib


def hash_content(text: str) -> str:
    """Return the SHA-256 hex digest of the UTF-8 bytes of ``text``.

    Args:
        text (str): The text to fingerprint.

    Returns:
        str: 64 character lowercase hex digest.
    """
    return hashlib.sha256(text.encode("utf-8")).hexdigest()
