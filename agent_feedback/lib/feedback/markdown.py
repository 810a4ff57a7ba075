"""Markdown helpers for comment bodies.

Comment bodies are markdown and may open with a YAML front-matter block::

    ---
    kind: question
    parent_id: cmt_1767225600000_ab12cd
    ---
    Does this handle @bob's edge case?

Only ``kind`` and ``parent_id`` are read from front matter; other keys are
kept in ``ParsedBody.front_matter`` but otherwise ignored.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict

import yaml

logger = logging.getLogger(__name__)

_FRONT_MATTER_RE = re.compile(r"\A---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL)

_CODE_BLOCK_RE = re.compile(r"```.*?```", re.DOTALL)
_INLINE_CODE_RE = re.compile(r"`[^`]*`")
_LINK_RE = re.compile(r"\[([^\]]+)\]\([^)]+\)")
_PUNCTUATION_RE = re.compile(r"[#>*~]+")
# Underscores and hyphens inside words (snake_case) survive.
_EDGE_DASH_RE = re.compile(r"(?<!\w)[_\-]+|[_\-]+(?!\w)")
# @-handle runs of any length are left whole so mentions survive.
_HANDLE_RUN_RE = re.compile(r"(?:^|(?<=[^\w]))@[A-Za-z0-9_-]+")
_BLANK_RUN_RE = re.compile(r"\n{3,}")


@dataclass
class ParsedBody:
    """A comment body split into front matter and markdown content."""

    content: str
    front_matter: Dict[str, Any] = field(default_factory=dict)


def parse_front_matter(raw: str) -> ParsedBody:
    """Split a leading YAML front-matter block from ``raw``.

    A block that is not valid YAML, or does not hold a mapping, is treated
    as having no front matter and the whole text is returned as content.
    """
    match = _FRONT_MATTER_RE.match(raw)
    if not match:
        return ParsedBody(content=raw)

    try:
        data = yaml.safe_load(match.group(1))
    except yaml.YAMLError as e:
        logger.debug("Ignoring unparseable front matter: %s", e)
        return ParsedBody(content=raw)

    if data is None:
        data = {}
    if not isinstance(data, dict):
        return ParsedBody(content=raw)

    return ParsedBody(content=raw[match.end():], front_matter=data)


def _strip_edge_dashes(text: str) -> str:
    parts = []
    last = 0
    for match in _HANDLE_RUN_RE.finditer(text):
        parts.append(_EDGE_DASH_RE.sub(" ", text[last:match.start()]))
        parts.append(match.group(0))
        last = match.end()
    parts.append(_EDGE_DASH_RE.sub(" ", text[last:]))
    return "".join(parts)


def markdown_to_text(md: str) -> str:
    """Best-effort plain text rendering of markdown.

    Drops fenced and inline code, keeps link labels without their targets,
    and blanks out markdown punctuation.
    """
    text = _CODE_BLOCK_RE.sub(" ", md)
    text = _INLINE_CODE_RE.sub(" ", text)
    text = _LINK_RE.sub(r"\1", text)
    text = _PUNCTUATION_RE.sub(" ", text)
    text = _strip_edge_dashes(text)
    text = text.replace("\r\n", "\n")
    text = _BLANK_RUN_RE.sub("\n\n", text)
    return text.strip()
