"""Object key normalization for the bucket namespace."""

from __future__ import annotations

import posixpath
import re
from urllib.parse import quote

from skrift_gcs.config import ensure_leading_slash

# Characters left as-is when encoding a key. ``!'()#*+?`` and space are valid
# in URIs but are rejected in object URLs, so they are not in this set.
KEY_SAFE_CHARACTERS = "/;,:@&=$%"

# A ``%`` that does not start a percent-escape
BARE_PERCENT = re.compile(r"%(?![0-9A-Fa-f]{2})")


def remove_leading_slash(path: str) -> str:
    return path[1:] if path.startswith("/") else path


def resolve_key(path: str, filename: str) -> str:
    """Join *filename* onto *path* and resolve it to an absolute key.

    ``.`` and ``..`` segments are collapsed and an absolute *filename*
    replaces *path* entirely, as POSIX path resolution does.
    """
    key = posixpath.normpath(posixpath.join(ensure_leading_slash(path), filename))
    # normpath keeps exactly two leading slashes
    if key.startswith("//"):
        key = "/" + key.lstrip("/")
    return key


def encode_special_characters(key: str) -> str:
    """Percent-encode *key* for use in an object URL.

    A ``%`` followed by two hex digits is taken to be an existing escape and
    kept, so encoding an encoded key returns it unchanged. The flip side is
    that an object literally named ``a%20b.png`` gets the URL of ``a b.png``.
    Any other ``%`` is encoded as ``%25``.
    """
    return quote(BARE_PERCENT.sub("%25", key), safe=KEY_SAFE_CHARACTERS)


def relative_key(object_name: str, path: str) -> str:
    """Return *object_name* relative to the key prefix *path*.

    Names outside the prefix are returned as absolute keys.
    """
    key = ensure_leading_slash(object_name)
    prefix = resolve_key(path, "")
    if prefix == "/":
        return remove_leading_slash(key)
    if key.startswith(prefix + "/"):
        return key[len(prefix) + 1:]
    return key
