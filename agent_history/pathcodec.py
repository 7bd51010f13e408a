"""Encodings that turn a filesystem path into a project id and back.

Claude Code names its project directories by replacing every ``/`` in the
working directory with ``-``. That mapping is lossy: ``/a/b-c`` and
``/a/b/c`` both become ``-a-b-c``, so ``decode_legacy_path`` can only guess.
The legacy pair is still what locates directories on disk.

``encode_path_id`` escapes ``%`` and ``-`` before substituting separators, so
it never collides. For paths without those characters it produces the same
string as the legacy encoding, and ``decode_path_id`` falls back to the legacy
decode for ids that contain no escapes.
"""

import base64
import binascii

SEPARATOR = "/"
FILLER = "-"


def encode_legacy_path(path: str) -> str:
    return path.replace(SEPARATOR, FILLER)


def decode_legacy_path(encoded: str) -> str:
    """Decode directory name back to original path."""
    return encoded.replace(FILLER, SEPARATOR)


def encode_path_id(path: str) -> str:
    escaped = path.replace("%", "%25").replace(FILLER, "%2D")
    return escaped.replace(SEPARATOR, FILLER)


def decode_path_id(encoded: str) -> str:
    if "%" not in encoded:
        return decode_legacy_path(encoded)
    out = []
    i = 0
    while i < len(encoded):
        ch = encoded[i]
        if ch == FILLER:
            out.append(SEPARATOR)
        elif ch == "%" and encoded[i + 1:i + 3].upper() == "2D":
            out.append(FILLER)
            i += 2
        elif ch == "%" and encoded[i + 1:i + 3] == "25":
            out.append("%")
            i += 2
        else:
            out.append(ch)
        i += 1
    return "".join(out)


def encode_base64url(text: str) -> str:
    """URL-safe base64 without padding."""
    return base64.urlsafe_b64encode(text.encode("utf-8")).decode("ascii").rstrip("=")


def decode_base64url(encoded: str) -> str:
    """Inverse of encode_base64url. Raises ValueError on malformed input."""
    padded = encoded + "=" * (-len(encoded) % 4)
    try:
        return base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8")
    except (UnicodeError, binascii.Error) as e:
        raise ValueError(f"Invalid base64url project id: {encoded!r}") from e


def project_name(path: str) -> str:
    """Last non-empty path segment, or the path itself."""
    parts = [p for p in path.split(SEPARATOR) if p]
    return parts[-1] if parts else path
