"""Response parsing: fenced code extraction and project structure parsing.

:func:`parse_project_structure` turns a model's description of a project
layout into a Template Tree. It accepts a JSON object or an indented listing
(plain indentation or ``tree`` drawing characters) and raises
:class:`ParseError` whenever the listing is ambiguous instead of guessing.
"""

from __future__ import annotations

import json
import re
from typing import Any

# ```lang\n ... \n```
_FENCE = re.compile(r"```([\w+#.-]*)[ \t]*\n(.*?)\n```", re.DOTALL)


class ParseError(ValueError):
    """A model response could not be turned into the requested structure."""

    def __init__(self, message: str, line: int | None = None) -> None:
        self.line = line
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)


# ---------------------------------------------------------------------------
# Code extraction
# ---------------------------------------------------------------------------


def extract_code_blocks(text: str, languages: list[str] | None = None) -> list[tuple[str, str]]:
    """Return ``(language, code)`` for every fenced block in *text*.

    With *languages* set, only blocks tagged with one of them (or untagged)
    are returned. Untagged blocks report language ``"text"``.
    """
    wanted = {lang.lower() for lang in languages} if languages else None
    blocks: list[tuple[str, str]] = []
    for match in _FENCE.finditer(text):
        language = match.group(1).lower()
        if wanted is not None and language and language not in wanted:
            continue
        blocks.append((language or "text", match.group(2)))
    return blocks


def extract_code(text: str, languages: list[str] | None = None) -> str:
    """Join the bodies of all matching fenced blocks, or return *text* unchanged."""
    blocks = extract_code_blocks(text, languages)
    if not blocks:
        return text
    return "\n\n".join(code for _, code in blocks)


def extract_json_block(text: str) -> Any | None:
    """Parse the first ```json fenced block in *text*.

    Returns ``None`` when there is no such block.

    Raises:
        ParseError: If the block exists but is not valid JSON.
    """
    body = next((code for language, code in extract_code_blocks(text) if language == "json"), None)
    if body is None:
        return None
    try:
        return json.loads(body)
    except json.JSONDecodeError as exc:
        raise ParseError(f"invalid JSON in fenced block: {exc.msg}", line=exc.lineno) from exc


# ---------------------------------------------------------------------------
# Project structure
# ---------------------------------------------------------------------------

_TREE_PREFIX = re.compile(r"^([\s│├└─|`+*\-]*)(.*)$")
_TRAILING_COMMENT = re.compile(r"\s+(#|//|<--|←).*$")
_HAS_EXTENSION = re.compile(r"[^./]\.[A-Za-z0-9]+$")


def parse_project_structure(text: str) -> dict[str, Any]:
    """Parse a model response describing a project layout into a Template Tree.

    Raises:
        ParseError: For empty input, invalid JSON, or an inconsistent listing.
    """
    stripped = text.strip()
    if not stripped:
        raise ParseError("empty response")

    fenced = extract_code_blocks(stripped)
    if fenced:
        language, body = fenced[0]
    else:
        language, body = "", stripped

    if language == "json" or body.lstrip().startswith("{"):
        return _parse_json_tree(body)
    return _parse_listing(body)


def _parse_json_tree(body: str) -> dict[str, Any]:
    try:
        data = json.loads(body)
    except json.JSONDecodeError as exc:
        raise ParseError(f"invalid JSON: {exc.msg}", line=exc.lineno) from exc
    if not isinstance(data, dict):
        raise ParseError(f"expected a JSON object, got {type(data).__name__}")
    return _validate_tree(data, "")


def _validate_tree(node: dict, where: str) -> dict[str, Any]:
    tree: dict[str, Any] = {}
    for raw_key, value in node.items():
        key = raw_key.strip().rstrip("/")
        path = f"{where}/{key}" if where else key
        if not key or key.startswith("/") or ".." in key.split("/"):
            raise ParseError(f"invalid entry name {raw_key!r} at {where or '<root>'}")
        if isinstance(value, dict):
            tree[key] = _validate_tree(value, path)
        elif value is None or isinstance(value, str):
            tree[key] = value
        else:
            raise ParseError(f"{path}: unsupported value of type {type(value).__name__}")
    return tree


def _parse_listing(body: str) -> dict[str, Any]:
    entries: list[tuple[int, int, str]] = []
    for lineno, raw in enumerate(body.splitlines(), start=1):
        if not raw.strip():
            continue
        prefix, name = _TREE_PREFIX.match(raw.expandtabs(4)).groups()
        name = _TRAILING_COMMENT.sub("", name).strip()
        if not name:
            continue
        if re.search(r"\s", name):
            raise ParseError(f"{name!r} is not a file or directory name", line=lineno)
        entries.append((lineno, len(prefix), name))

    if not entries:
        raise ParseError("no files or directories found")

    base = min(width for _, width, _ in entries)
    offsets = sorted({width - base for _, width, _ in entries if width > base})
    unit = offsets[0] if offsets else 1

    levels: list[int] = []
    for lineno, width, _ in entries:
        offset = width - base
        if offset % unit:
            raise ParseError(
                f"indentation of {offset} is not a multiple of {unit}", line=lineno
            )
        level = offset // unit
        previous = levels[-1] if levels else -1
        if level > previous + 1:
            raise ParseError(f"indentation jumps from level {previous} to {level}", line=lineno)
        levels.append(level)

    tree: dict[str, Any] = {}
    stack: list[dict[str, Any]] = [tree]
    for index, (lineno, _, name) in enumerate(entries):
        level = levels[index]
        has_children = index + 1 < len(entries) and levels[index + 1] > level
        key = name.rstrip("/")
        if not key or ".." in key.split("/"):
            raise ParseError(f"invalid entry name {name!r}", line=lineno)
        if has_children and not name.endswith("/") and _HAS_EXTENSION.search(key):
            raise ParseError(f"file {key!r} cannot contain other entries", line=lineno)

        del stack[level + 1 :]
        parent = stack[level]
        if key in parent:
            raise ParseError(f"duplicate entry {key!r}", line=lineno)

        if name.endswith("/") or has_children:
            child: dict[str, Any] = {}
            parent[key] = child
            stack.append(child)
        else:
            parent[key] = None
    return tree
