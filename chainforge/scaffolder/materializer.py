"""Write a Template Tree to disk.

A Template Tree is a nested ``dict``: ``None`` values become empty files,
strings become file content, and nested dicts become directories. String
content may contain ``{{Variable}}`` placeholders, substituted from the
bindings, or be exactly a ``{{category.name}}`` reference, resolved through a
:class:`TemplateSource` such as
:class:`~chainforge.scaffolder.store.TemplateStore`.

Writes run in a worker thread so the event loop never blocks on the
filesystem. A failed write aborts the walk; files already written stay.
"""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Protocol

from rich.console import Console

from chainforge.utils import write_text

console = Console()

VARIABLE = re.compile(r"\{\{(\w+)\}\}")
TEMPLATE_REF = re.compile(r"^\{\{([A-Za-z_]\w*)\.([\w.\-]+)\}\}$")


class TemplateSource(Protocol):
    """Anything that can look up fragment content by category and name."""

    def get_template_content(self, category: str, name: str) -> str: ...


class MaterializationError(Exception):
    """A file or directory of the tree could not be written."""

    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        super().__init__(f"{path}: {message}")


class TemplateResolutionWarning(UserWarning):
    """A ``{{category.name}}`` reference could not be resolved."""

    def __init__(self, reference: str, path: Path, reason: str) -> None:
        self.reference = reference
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to resolve template {reference} for {path}: {reason}")


@dataclass
class MaterializationResult:
    files: list[Path] = field(default_factory=list)
    directories: list[Path] = field(default_factory=list)
    warnings: list[TemplateResolutionWarning] = field(default_factory=list)


def substitute_variables(text: str, bindings: Mapping[str, str]) -> str:
    """Replace every ``{{Name}}`` whose name is bound; leave the rest verbatim."""

    def _replace(match: re.Match[str]) -> str:
        name = match.group(1)
        if name in bindings:
            return str(bindings[name])
        return match.group(0)

    return VARIABLE.sub(_replace, text)


async def materialize(
    tree: Mapping[str, Any],
    destination: str | Path,
    bindings: Mapping[str, str],
    store: TemplateSource | None = None,
) -> MaterializationResult:
    """Write *tree* under *destination*, depth first in insertion order.

    Raises:
        TypeError: If a value is not ``None``, ``str`` or ``dict``.
        MaterializationError: If the filesystem rejects a write.
    """
    result = MaterializationResult()
    root = Path(destination)
    await _make_directory(root)
    await _walk(tree, root, bindings, store, result)
    return result


async def _walk(
    tree: Mapping[str, Any],
    base: Path,
    bindings: Mapping[str, str],
    store: TemplateSource | None,
    result: MaterializationResult,
) -> None:
    for key, value in tree.items():
        path = base / key
        if value is None:
            await _write_file(path, "")
            result.files.append(path)
        elif isinstance(value, str):
            content = await _resolve_reference(value, path, store, result)
            await _write_file(path, substitute_variables(content, bindings))
            result.files.append(path)
        elif isinstance(value, Mapping):
            await _make_directory(path)
            result.directories.append(path)
            await _walk(value, path, bindings, store, result)
        else:
            raise TypeError(
                f"Unsupported template tree value for {path}: {type(value).__name__}"
            )


async def _resolve_reference(
    value: str,
    path: Path,
    store: TemplateSource | None,
    result: MaterializationResult,
) -> str:
    match = TEMPLATE_REF.match(value.strip())
    if match is None:
        return value

    category, name = match.groups()
    reason = ""
    if store is None:
        reason = "no template store available"
    else:
        try:
            return await asyncio.to_thread(store.get_template_content, category, name)
        except Exception as exc:
            reason = f"{type(exc).__name__}: {exc}"

    warning = TemplateResolutionWarning(value.strip(), path, reason)
    result.warnings.append(warning)
    console.print(f"[yellow]{warning}[/yellow]")
    return value


async def _write_file(path: Path, content: str) -> None:
    try:
        await asyncio.to_thread(write_text, path, content)
    except OSError as exc:
        raise MaterializationError(path, exc.strerror or str(exc)) from exc


async def _make_directory(path: Path) -> None:
    try:
        await asyncio.to_thread(path.mkdir, parents=True, exist_ok=True)
    except OSError as exc:
        raise MaterializationError(path, exc.strerror or str(exc)) from exc
