"""@-mention extraction."""

import re
from typing import Set

MAX_HANDLE_LENGTH = 32

# The lookbehind keeps email local parts (bob@example.com) from matching; the
# trailing lookahead rejects runs longer than MAX_HANDLE_LENGTH outright.
MENTION_RE = re.compile(
    r"(?:^|(?<=[^\w]))@([A-Za-z0-9_-]{1,%d})(?![A-Za-z0-9_-])" % MAX_HANDLE_LENGTH
)


def extract_mentions(text: str) -> Set[str]:
    """Return the distinct handles mentioned in ``text``.

    Handles are compared case-sensitively, so ``@Bob`` and ``@bob`` are two
    different mentions.
    """
    if not text:
        return set()
    return set(MENTION_RE.findall(text))
