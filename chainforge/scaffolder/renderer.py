"""Jinja2 rendering for the boilerplate files of a generated project.

Chain configuration (``hardhat.config.js``, ``solana-program.config.js``),
``.env.example``, chain utility modules, framework integration stubs and the
project README are rendered from ``.j2`` files in the ``templates/`` directory
next to this module.

Template Tree content is *not* rendered with Jinja2: it goes through
:func:`~chainforge.scaffolder.materializer.substitute_variables`, which leaves
unknown ``{{...}}`` text (JSX expressions, for instance) untouched.
"""

from __future__ import annotations

import asyncio
import re
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from chainforge.utils import write_text

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"


class TemplateRenderer:
    """Renders Jinja2 templates with project context data."""

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([]),
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )
        self.env.filters["slugify"] = _slugify_filter
        self.env.filters["pascal_case"] = _pascal_case_filter
        self.env.filters["camel_case"] = _camel_case_filter
        self.env.filters["env_name"] = _env_name_filter

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a template relative to the template directory."""
        template = self.env.get_template(template_path)
        return template.render(**context)

    def render_string(self, template_string: str, context: dict[str, Any]) -> str:
        template = self.env.from_string(template_string)
        return template.render(**context)

    async def render_to_file(
        self,
        template_path: str,
        output_path: str | Path,
        context: dict[str, Any],
    ) -> Path:
        """Render a template and write the result to *output_path*.

        Parent directories are created automatically.
        """
        content = self.render(template_path, context)
        out = Path(output_path)
        await asyncio.to_thread(write_text, out, content)
        return out

    def has_template(self, template_path: str) -> bool:
        return (self.template_dir / template_path).is_file()

    def list_templates(self, prefix: str = "") -> list[str]:
        """Sorted ``.j2`` template paths under *prefix*, relative to the root."""
        search_dir = self.template_dir / prefix if prefix else self.template_dir
        if not search_dir.is_dir():
            return []
        return sorted(
            str(p.relative_to(self.template_dir).as_posix()) for p in search_dir.rglob("*.j2")
        )


# ---------------------------------------------------------------------------
# Jinja2 custom filters
# ---------------------------------------------------------------------------


def _slugify_filter(value: str) -> str:
    """Convert a string to a URL/filename-safe slug."""
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower().strip())
    return slug.strip("-")


def _pascal_case_filter(value: str) -> str:
    """Convert ``some-thing`` or ``some_thing`` to ``SomeThing``."""
    parts = re.split(r"[-_\s]+", value)
    return "".join(word[:1].upper() + word[1:] for word in parts if word)


def _camel_case_filter(value: str) -> str:
    """Convert ``some-thing`` or ``some_thing`` to ``someThing``."""
    pascal = _pascal_case_filter(value)
    if pascal:
        return pascal[0].lower() + pascal[1:]
    return ""


def _env_name_filter(value: str) -> str:
    """Convert ``arbitrum sepolia`` or ``bnb-chain`` to ``ARBITRUM_SEPOLIA`` / ``BNB_CHAIN``."""
    return re.sub(r"[^A-Za-z0-9]+", "_", value).strip("_").upper()
