import re
from typing import List

FILENAME_RE = re.compile(r"[0-9a-zA-Z\-_.]+(/[0-9a-zA-Z\-_.]+)*")

class InvalidFilename(ValueError):
    pass

def validate_filename(name: str) -> List[str]:
    """
    Split a client-supplied relative path into its segments.

    Only ``[0-9a-zA-Z-_.]`` separated by single slashes is accepted, and no
    segment may be ``.`` or ``..``. Anything else raises InvalidFilename, so
    the result is always safe to join under a scratch directory.
    """
    if not FILENAME_RE.fullmatch(name):
        raise InvalidFilename(f"Invalid filename {name}")
    parts = name.split("/")
    for p in parts:
        if p in (".", ".."):
            raise InvalidFilename(f"Invalid filename {name}")
    return parts
