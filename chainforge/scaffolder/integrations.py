"""Shallow clones of open-source repositories used as integration references.

Generated projects do not vendor these repositories; they get a ``.ref`` file
pointing at the shared clone under the integrations directory.
"""

from __future__ import annotations

import asyncio
import re
import shutil
from dataclasses import dataclass, field
from pathlib import Path

from rich.console import Console

from chainforge.utils import run_command

console = Console()

_SYMREF_HEAD = re.compile(r"ref: refs/heads/(\S+)\s+HEAD")


@dataclass(frozen=True)
class RepoSpec:
    """Where to fetch an integration and how to install it."""

    url: str
    install_cmd: str
    branch: str | None = None
    directory: str = ""


OPEN_SOURCE_REPOS: dict[str, RepoSpec] = {
    "langchain": RepoSpec(
        url="https://github.com/langchain-ai/langchain.git",
        install_cmd="pip install -e .",
    ),
    "gpt-engineer": RepoSpec(
        url="https://github.com/AntonOsika/gpt-engineer.git",
        install_cmd="pip install -e .",
    ),
    "hardhat": RepoSpec(
        url="https://github.com/NomicFoundation/hardhat.git",
        install_cmd="npm install",
    ),
    "anchor": RepoSpec(
        url="https://github.com/coral-xyz/anchor.git",
        install_cmd="cargo build",
    ),
    "gpt4all": RepoSpec(
        url="https://github.com/nomic-ai/gpt4all.git",
        install_cmd="pip install -e .",
    ),
    "claude-api": RepoSpec(
        url="https://github.com/anthropics/anthropic-sdk-python.git",
        install_cmd="pip install -e .",
    ),
    "llama.cpp": RepoSpec(
        url="https://github.com/ggerganov/llama.cpp.git",
        install_cmd="make",
    ),
    "solana-web3": RepoSpec(
        url="https://github.com/solana-labs/solana-web3.js.git",
        install_cmd="npm install",
    ),
    "scaffold-eth-2": RepoSpec(
        url="https://github.com/scaffold-eth/scaffold-eth-2.git",
        install_cmd="yarn install",
    ),
}


class RepoFetchError(Exception):
    """Raised when a repository cannot be cloned."""

    def __init__(self, repo: str, message: str, stderr: str = "") -> None:
        self.repo = repo
        self.stderr = stderr
        super().__init__(f"Failed to clone {repo}: {message}")


@dataclass
class CloneReport:
    """Paths of successful clones and messages for failed ones."""

    cloned: dict[str, Path] = field(default_factory=dict)
    errors: list[dict[str, str]] = field(default_factory=list)


class RepoFetcher:
    """Clones catalog repositories into a shared integrations directory."""

    def __init__(
        self,
        integrations_dir: str | Path,
        catalog: dict[str, RepoSpec] | None = None,
        timeout: int = 600,
    ) -> None:
        self.integrations_dir = Path(integrations_dir)
        self.catalog = dict(OPEN_SOURCE_REPOS if catalog is None else catalog)
        self.timeout = timeout

    def target_dir(self, name: str) -> Path:
        spec = self.catalog[name]
        return self.integrations_dir / (spec.directory or name)

    async def default_branch(self, url: str) -> str:
        """Ask the remote which branch HEAD points to; ``main`` if unknown."""
        rc, stdout, stderr = await run_command(
            ["git", "ls-remote", "--symref", url, "HEAD"], timeout=60
        )
        if rc == 0:
            match = _SYMREF_HEAD.search(stdout)
            if match:
                return match.group(1)
            console.print(
                f"[yellow]Unable to determine default branch for {url}, using 'main'[/yellow]"
            )
        else:
            console.print(
                f"[yellow]Failed to get default branch for {url}: {stderr or rc}, "
                "using 'main'[/yellow]"
            )
        return "main"

    async def clone(self, name: str) -> Path:
        """Clone catalog entry *name* and return its directory.

        An existing checkout (a directory holding ``.git``) is reused as-is; any
        other directory at the target is treated as an interrupted clone and
        removed first. A clone of the detected branch that fails is retried
        once without ``--branch``.

        Raises:
            RepoFetchError: If the repository is unknown or cannot be cloned.
        """
        if name not in self.catalog:
            raise RepoFetchError(name, "no repository configuration found")

        spec = self.catalog[name]
        target = self.target_dir(name)
        if (target / ".git").exists():
            console.print(f"[dim]Repository already cloned at {target}, skipping clone[/dim]")
            return target
        if target.exists():
            console.print(
                f"[yellow]Removing incomplete clone at {target} before cloning {name}[/yellow]"
            )
            await asyncio.to_thread(shutil.rmtree, target, ignore_errors=True)
        target.parent.mkdir(parents=True, exist_ok=True)

        branch = spec.branch or await self.default_branch(spec.url)
        console.print(f"  Cloning [bold]{name}[/bold] ({branch}) to {target}...")
        rc, _, stderr = await run_command(
            ["git", "clone", "--depth", "1", "--branch", branch, spec.url, str(target)],
            timeout=self.timeout,
        )
        if rc == 0:
            return target

        console.print(
            f"[yellow]Clone of {name} on branch {branch} failed, retrying without branch[/yellow]"
        )
        rc, _, stderr = await run_command(
            ["git", "clone", "--depth", "1", spec.url, str(target)],
            timeout=self.timeout,
        )
        if rc != 0:
            raise RepoFetchError(name, f"git clone exited with {rc}", stderr=stderr)
        return target

    async def clone_many(self, names: list[str]) -> CloneReport:
        """Clone each repository in turn, collecting failures instead of raising."""
        report = CloneReport()
        for name in dict.fromkeys(names):
            try:
                report.cloned[name] = await self.clone(name)
            except RepoFetchError as exc:
                console.print(f"[red]{exc}[/red]")
                report.errors.append({"repo": name, "error": str(exc)})
        return report
