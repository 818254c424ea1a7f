# =============================================================================
# lib/filenames.py - Storage Key Sanitization
# =============================================================================
# Supabase Storage rejects or mangles object keys that contain non-ASCII
# characters or path-like symbols. Every uploaded file is written under a
# sanitized key while the original name is kept for display.
#
# Usage:
#   from lib.filenames import sanitize_filename, build_storage_key
#   sanitize_filename("My Report (final).pdf")   # "My_Report_(final).pdf"
#   build_storage_key("project-123", "데이터.csv") # "project-123/file.csv"
# =============================================================================

import re

# Fallback stem when nothing survives sanitization
FALLBACK_STEM = "file"

# Whitespace as browsers define it. Unlike Python's \s this leaves the
# \x1c-\x1f separators in place.
_WHITESPACE_RE = re.compile(
    r"[\t\n\x0b\x0c\r \u00a0\u1680\u2000-\u200a\u2028\u2029\u202f\u205f\u3000\ufeff]+"
)
_NON_ASCII_RE = re.compile(r"[^\x00-\x7F]")
_UNSAFE_CHARS_RE = re.compile(r'[<>:"/\\|?*]')
_UNDERSCORES_RE = re.compile(r"_+")


def split_extension(filename: str) -> tuple[str, str]:
    """
    Split a filename at its last dot.

    The extension keeps its leading dot. Names without a dot have an
    empty extension.

    Example:
        split_extension("archive.tar.gz")  # ("archive.tar", ".gz")
        split_extension("README")          # ("README", "")
    """
    index = filename.rfind(".")
    if index == -1:
        return filename, ""
    return filename[:index], filename[index:]


def sanitize_filename(filename: str) -> str:
    """
    Map a user-supplied filename to a storage-key-safe name.

    Only the stem is rewritten; the extension is reattached byte for byte.
    The stem goes through, in order:
    1. Whitespace runs -> single underscore
    2. Non-ASCII code points removed
    3. Characters from <>:"/\\|?* removed
    4. Repeated underscores collapsed
    5. Leading/trailing underscores trimmed
    6. Empty result -> "file"

    The function is total and idempotent.

    Args:
        filename: Original filename as selected by the user

    Returns:
        Sanitized filename

    Example:
        sanitize_filename("???.png")  # "file.png"
    """
    stem, extension = split_extension(filename)

    stem = _WHITESPACE_RE.sub("_", stem)
    stem = _NON_ASCII_RE.sub("", stem)
    stem = _UNSAFE_CHARS_RE.sub("", stem)
    stem = _UNDERSCORES_RE.sub("_", stem)
    stem = stem.strip("_")

    return (stem or FALLBACK_STEM) + extension


def build_storage_key(prefix: str | None, filename: str) -> str:
    """
    Build the object key a file is written under.

    Args:
        prefix: Optional folder inside the bucket (usually the project ID)
        filename: Original filename (sanitized here)

    Returns:
        "prefix/sanitized" or just "sanitized" when no prefix is given
    """
    sanitized = sanitize_filename(filename)
    if prefix:
        return f"{prefix}/{sanitized}"
    return sanitized
