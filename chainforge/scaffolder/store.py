"""File-backed template store.

Templates live under ``<templates_dir>/<category>/<name>`` for the categories
``contracts``, ``frontend`` and ``projects``. A fresh store is seeded from the
defaults shipped next to this module.
"""

from __future__ import annotations

import json
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from rich.console import Console

console = Console()

CATEGORIES: tuple[str, ...] = ("contracts", "frontend", "projects")

_DEFAULTS_DIR = Path(__file__).parent / "defaults"

BASIC_PROJECT_TEMPLATE = "basic-web3-project.json"


class TemplateNotFoundError(LookupError):
    """No template with the requested name exists in the category."""

    def __init__(self, category: str, name: str) -> None:
        self.category = category
        self.name = name
        super().__init__(f"Template {category}/{name} not found")


class InvalidTemplateError(ValueError):
    """A template exists but does not pass validation."""

    def __init__(self, category: str, name: str, errors: list[str]) -> None:
        self.category = category
        self.name = name
        self.errors = errors
        super().__init__(f"Template {category}/{name} is invalid: {'; '.join(errors)}")


@dataclass
class TemplateValidation:
    """Outcome of validating one template; warnings do not invalidate it."""

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


@dataclass
class ValidationSummary:
    valid: int = 0
    with_warnings: int = 0
    with_errors: int = 0
    details: dict[str, dict[str, TemplateValidation]] = field(default_factory=dict)


def validate_content(category: str, content: str) -> TemplateValidation:
    """Check *content* against the rules for *category*."""
    result = TemplateValidation()
    if category == "contracts":
        if "SPDX-License-Identifier:" not in content:
            result.warnings.append("Missing SPDX license identifier")
        if "pragma solidity" not in content:
            result.errors.append("Missing pragma solidity statement")
        if "contract " not in content:
            result.errors.append("Missing contract definition")
    elif category == "frontend":
        if "import React" not in content:
            result.warnings.append("Missing React import")
        if "export default" not in content:
            result.warnings.append("Missing export default statement")
    elif category == "projects":
        try:
            parsed = json.loads(content)
        except json.JSONDecodeError as exc:
            result.errors.append(f"Invalid JSON format: {exc.msg}")
        else:
            if not isinstance(parsed, dict):
                result.errors.append("Project template must be a JSON object")
            else:
                if not parsed.get("name"):
                    result.errors.append("Missing project name")
                if not parsed.get("structure"):
                    result.errors.append("Missing project structure")
    return result


class TemplateStore:
    """Maps ``(category, name)`` to template content on disk."""

    def __init__(self, templates_dir: str | Path) -> None:
        self.templates_dir = Path(templates_dir)

    # -- Paths -------------------------------------------------------------

    def category_dir(self, category: str) -> Path:
        if category not in CATEGORIES:
            raise ValueError(f"Invalid template category: {category}")
        return self.templates_dir / category

    def _template_path(self, category: str, name: str) -> Path:
        if not name or "/" in name or "\\" in name or name in (".", ".."):
            raise ValueError(f"Invalid template name: {name!r}")
        return self.category_dir(category) / name

    # -- Lifecycle ---------------------------------------------------------

    def initialize(self) -> ValidationSummary:
        """Create category directories, seed defaults if empty, validate everything."""
        for category in CATEGORIES:
            directory = self.category_dir(category)
            if not directory.is_dir():
                directory.mkdir(parents=True, exist_ok=True)
                console.print(f"[dim]Created template directory: {directory}[/dim]")

        if not self.list_templates("contracts"):
            self.create_default_templates()

        return self.validate_all()

    def create_default_templates(self) -> list[Path]:
        """Copy the bundled default templates into the store."""
        written: list[Path] = []
        for category in CATEGORIES:
            source_dir = _DEFAULTS_DIR / category
            if not source_dir.is_dir():
                continue
            for source in sorted(source_dir.iterdir()):
                if source.is_file():
                    target = self.category_dir(category) / source.name
                    target.parent.mkdir(parents=True, exist_ok=True)
                    shutil.copyfile(source, target)
                    written.append(target)
        console.print(f"[green]Default templates created ({len(written)} files)[/green]")
        return written

    # -- Reads -------------------------------------------------------------

    def list_templates(self, category: str) -> list[str]:
        """Sorted template names in *category*, hidden files excluded."""
        directory = self.category_dir(category)
        if not directory.is_dir():
            return []
        return sorted(
            p.name for p in directory.iterdir() if p.is_file() and not p.name.startswith(".")
        )

    def has_template(self, category: str, name: str) -> bool:
        return self._template_path(category, name).is_file()

    def get_template_content(self, category: str, name: str) -> str:
        """Return the content of ``category/name``.

        Raises:
            ValueError: For an unknown category or a malformed name.
            TemplateNotFoundError: If the template does not exist.
        """
        path = self._template_path(category, name)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise TemplateNotFoundError(category, name) from exc

    def load_project_template(self, name: str) -> dict[str, Any]:
        """Return the ``structure`` of a project template.

        Raises:
            TemplateNotFoundError: If the template does not exist.
            InvalidTemplateError: If it is not valid project JSON.
        """
        content = self.get_template_content("projects", name)
        validation = validate_content("projects", content)
        if not validation.is_valid:
            raise InvalidTemplateError("projects", name, validation.errors)
        structure = json.loads(content)["structure"]
        if not isinstance(structure, dict):
            raise InvalidTemplateError("projects", name, ["Project structure must be an object"])
        return structure

    def select_project_template(self, project_type: str, blockchain: str) -> str | None:
        """Pick the most specific project template available.

        Order: ``<chain>-<type>-project.json``, then ``<type>-project.json``
        for tokens and NFTs, then the basic Web3 project.
        """
        available = set(self.list_templates("projects"))
        candidates = [f"{blockchain}-{project_type}-project.json"]
        if project_type in ("token", "nft"):
            candidates.append(f"{project_type}-project.json")
        candidates.append(BASIC_PROJECT_TEMPLATE)
        for candidate in candidates:
            if candidate in available:
                return candidate
        return None

    # -- Validation --------------------------------------------------------

    def validate_template(self, category: str, name: str) -> TemplateValidation:
        try:
            content = self.get_template_content(category, name)
        except TemplateNotFoundError as exc:
            return TemplateValidation(errors=[f"Validation failed: {exc}"])
        return validate_content(category, content)

    def validate_all(self) -> ValidationSummary:
        summary = ValidationSummary()
        for category in CATEGORIES:
            summary.details[category] = {}
            for name in self.list_templates(category):
                validation = self.validate_template(category, name)
                summary.details[category][name] = validation
                if validation.is_valid:
                    summary.valid += 1
                if validation.warnings:
                    summary.with_warnings += 1
                if validation.errors:
                    summary.with_errors += 1
                    console.print(
                        f"[red]Template validation failed for {category}/{name}: "
                        f"{', '.join(validation.errors)}[/red]"
                    )
        console.print(
            f"[dim]Template validation complete: {summary.valid} valid templates, "
            f"{summary.with_warnings} with warnings, {summary.with_errors} with errors[/dim]"
        )
        return summary

    # -- Writes ------------------------------------------------------------

    def add_template(
        self, category: str, name: str, content: str, validate: bool = True
    ) -> TemplateValidation:
        """Store a template, refusing content that fails validation.

        Returns the validation result; the file is only written when it is
        valid (or when *validate* is false).
        """
        path = self._template_path(category, name)
        validation = validate_content(category, content) if validate else TemplateValidation()
        if not validation.is_valid:
            return validation
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return validation
