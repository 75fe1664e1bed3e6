"""Unit tests for Template Tree materialisation (chainforge.scaffolder.materializer).

Tests cover:
- substitute_variables (bound, unbound, non-identifier braces)
- materialize: files, empty files, nested directories, idempotence
- {{category.name}} references: resolved, missing, no store, failing sources
- Reference resolution happens before variable substitution
- Invalid tree values and filesystem failures
"""

from __future__ import annotations

from pathlib import Path

import pytest

from chainforge.scaffolder.materializer import (
    MaterializationError,
    TemplateResolutionWarning,
    materialize,
    substitute_variables,
)
from chainforge.scaffolder.store import TemplateStore


# ---------------------------------------------------------------------------
# substitute_variables
# ---------------------------------------------------------------------------


class TestSubstituteVariables:
    @pytest.mark.unit
    def test_unbound_left_verbatim(self):
        assert substitute_variables("{{A}}-{{B}}", {"A": "x"}) == "x-{{B}}"

    @pytest.mark.unit
    def test_repeated_placeholder(self):
        assert substitute_variables("{{N}} and {{N}}", {"N": "a"}) == "a and a"

    @pytest.mark.unit
    def test_jsx_expressions_untouched(self):
        text = "<div style={{ color: 'red' }}>{{Name}}</div>"
        assert substitute_variables(text, {"Name": "Hi"}) == (
            "<div style={{ color: 'red' }}>Hi</div>"
        )

    @pytest.mark.unit
    def test_values_not_rescanned(self):
        assert substitute_variables("{{A}}", {"A": "{{B}}", "B": "x"}) == "{{B}}"


# ---------------------------------------------------------------------------
# materialize
# ---------------------------------------------------------------------------


class TestMaterialize:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_nested_tree(self, tmp_path: Path):
        result = await materialize(
            {"a": {"b.txt": "Hello {{Name}}"}}, tmp_path / "out", {"Name": "World"}
        )
        assert (tmp_path / "out" / "a" / "b.txt").read_text(encoding="utf-8") == "Hello World"
        assert result.files == [tmp_path / "out" / "a" / "b.txt"]
        assert result.directories == [tmp_path / "out" / "a"]
        assert result.warnings == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_none_is_empty_file(self, tmp_path: Path):
        await materialize({"favicon.ico": None}, tmp_path, {})
        assert (tmp_path / "favicon.ico").read_text(encoding="utf-8") == ""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_empty_dict_is_empty_directory(self, tmp_path: Path):
        await materialize({"public": {}}, tmp_path, {})
        assert (tmp_path / "public").is_dir()
        assert list((tmp_path / "public").iterdir()) == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_idempotent_directories(self, tmp_path: Path):
        tree = {"contracts": {"Token.sol": "v1"}}
        await materialize(tree, tmp_path, {})
        await materialize({"contracts": {"Token.sol": "v2"}}, tmp_path, {})
        assert (tmp_path / "contracts" / "Token.sol").read_text(encoding="utf-8") == "v2"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_invalid_value(self, tmp_path: Path):
        with pytest.raises(TypeError, match="int"):
            await materialize({"bad": 42}, tmp_path, {})

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_write_failure(self, tmp_path: Path):
        (tmp_path / "blocker").write_text("a file, not a directory", encoding="utf-8")
        with pytest.raises(MaterializationError) as exc_info:
            await materialize({"blocker": {"child.txt": "x"}}, tmp_path, {})
        assert exc_info.value.path == tmp_path / "blocker"


# ---------------------------------------------------------------------------
# Template references
# ---------------------------------------------------------------------------


class TestTemplateReferences:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_reference_resolved_then_substituted(
        self, tmp_path: Path, template_store: TemplateStore
    ):
        result = await materialize(
            {"Token.sol": "{{contracts.ERC20.sol}}"},
            tmp_path / "project",
            {"TokenName": "Forge", "TokenSymbol": "FRG", "InitialSupply": "42"},
            template_store,
        )
        content = (tmp_path / "project" / "Token.sol").read_text(encoding="utf-8")
        assert "contract Forge is ERC20" in content
        assert 'ERC20("Forge", "FRG")' in content
        assert "42 * 10 ** decimals()" in content
        assert result.warnings == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_missing_reference_kept_with_warning(
        self, tmp_path: Path, template_store: TemplateStore
    ):
        result = await materialize(
            {"Missing.sol": "{{contracts.Missing.sol}}"}, tmp_path, {}, template_store
        )
        assert (tmp_path / "Missing.sol").read_text(encoding="utf-8") == (
            "{{contracts.Missing.sol}}"
        )
        assert len(result.warnings) == 1
        warning = result.warnings[0]
        assert isinstance(warning, TemplateResolutionWarning)
        assert warning.reference == "{{contracts.Missing.sol}}"
        assert warning.path == tmp_path / "Missing.sol"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unknown_category_kept_with_warning(
        self, tmp_path: Path, template_store: TemplateStore
    ):
        result = await materialize(
            {"deploy.js": "{{scripts.deploy.js}}"}, tmp_path, {}, template_store
        )
        assert (tmp_path / "deploy.js").read_text(encoding="utf-8") == "{{scripts.deploy.js}}"
        assert "Invalid template category" in result.warnings[0].reason

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_reference_without_store(self, tmp_path: Path):
        result = await materialize({"a.sol": "{{contracts.ERC20.sol}}"}, tmp_path, {})
        assert (tmp_path / "a.sol").read_text(encoding="utf-8") == "{{contracts.ERC20.sol}}"
        assert result.warnings[0].reason == "no template store available"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_reference_must_be_whole_value(
        self, tmp_path: Path, template_store: TemplateStore
    ):
        result = await materialize(
            {"notes.md": "See {{contracts.ERC20.sol}}"}, tmp_path, {}, template_store
        )
        assert (tmp_path / "notes.md").read_text(encoding="utf-8") == (
            "See {{contracts.ERC20.sol}}"
        )
        assert result.warnings == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_any_lookup_failure_keeps_literal(self, tmp_path: Path):
        class BrokenSource:
            def get_template_content(self, category: str, name: str) -> str:
                raise KeyError(name)

        result = await materialize(
            {"f.txt": "{{missing.frag}}", "after.txt": "still {{Name}}"},
            tmp_path,
            {"Name": "written"},
            BrokenSource(),
        )

        assert (tmp_path / "f.txt").read_text(encoding="utf-8") == "{{missing.frag}}"
        assert (tmp_path / "after.txt").read_text(encoding="utf-8") == "still written"
        assert result.warnings[0].reason.startswith("KeyError")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_duck_typed_source(self, tmp_path: Path):
        class DictSource:
            def get_template_content(self, category: str, name: str) -> str:
                return {("snippets", "header.txt"): "Header for {{Name}}"}[(category, name)]

        await materialize(
            {"header.txt": "{{snippets.header.txt}}"}, tmp_path, {"Name": "Forge"}, DictSource()
        )
        assert (tmp_path / "header.txt").read_text(encoding="utf-8") == "Header for Forge"
