"""Project scaffolding: template store, tree materialisation and generation.

Turns a :class:`ProjectSpec` into a project directory on disk, pulling file
content from stored templates, Jinja2 boilerplate and (optionally) a text
generation backend.

Quick usage::

    from chainforge.config import Config
    from chainforge.scaffolder import ProjectGenerator, ProjectSpec

    config = Config(output_dir="/tmp/output")
    generator = ProjectGenerator(config)
    generator.initialize()
    project_path = await generator.generate(
        ProjectSpec(name="My Token", type="token", blockchain="ethereum")
    )
"""

from chainforge.scaffolder.generator import (
    ProjectGenerationError,
    ProjectGenerator,
    ProjectParams,
    ProjectSpec,
)
from chainforge.scaffolder.integrations import (
    OPEN_SOURCE_REPOS,
    CloneReport,
    RepoFetcher,
    RepoFetchError,
    RepoSpec,
)
from chainforge.scaffolder.materializer import (
    MaterializationError,
    MaterializationResult,
    TemplateResolutionWarning,
    TemplateSource,
    materialize,
    substitute_variables,
)
from chainforge.scaffolder.renderer import TemplateRenderer
from chainforge.scaffolder.store import (
    InvalidTemplateError,
    TemplateNotFoundError,
    TemplateStore,
    TemplateValidation,
)

__all__ = [
    "OPEN_SOURCE_REPOS",
    "CloneReport",
    "InvalidTemplateError",
    "MaterializationError",
    "MaterializationResult",
    "ProjectGenerationError",
    "ProjectGenerator",
    "ProjectParams",
    "ProjectSpec",
    "RepoFetchError",
    "RepoFetcher",
    "RepoSpec",
    "TemplateNotFoundError",
    "TemplateRenderer",
    "TemplateResolutionWarning",
    "TemplateSource",
    "TemplateStore",
    "TemplateValidation",
    "materialize",
    "substitute_variables",
]
