"""
Project directory: numeric Sentry project ids to human-readable slugs.
"""

import re
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional

from shared.errors import ContractViolationError
from shared.logging import get_logger
from ..sentry.client import SentryClient
from ..sentry.projects import Project, list_organization_projects

logger = get_logger("sentry_exporter.directory")

# Optionally signed base-10 integer, no whitespace or digit separators
PROJECT_ID_PATTERN = re.compile(r"[+-]?[0-9]+")


class ProjectDirectory(Mapping[int, str]):
    """Read-only mapping of project id to slug.

    Built once and never mutated, so concurrent scrapes read it without
    locking.
    """

    def __init__(self, slugs: Optional[Mapping[int, str]] = None):
        self._slugs = MappingProxyType(dict(slugs or {}))

    def __getitem__(self, project_id: int) -> str:
        return self._slugs[project_id]

    def __iter__(self) -> Iterator[int]:
        return iter(self._slugs)

    def __len__(self) -> int:
        return len(self._slugs)

    def slug_for(self, project_id: int) -> str:
        """Slug of a project, or an empty string when it is unknown."""
        return self._slugs.get(project_id, "")

    @classmethod
    def from_projects(cls, projects: List[Project]) -> "ProjectDirectory":
        slugs: Dict[int, str] = {}
        for project in projects:
            if not PROJECT_ID_PATTERN.fullmatch(project.id):
                raise ContractViolationError(
                    f"Project id is not numeric: {project.id!r}",
                    details={"project_id": project.id, "slug": project.slug}
                )
            slugs[int(project.id)] = project.slug
        return cls(slugs)


async def resolve_project_directory(client: SentryClient) -> ProjectDirectory:
    """Fetch the organization's projects and build the directory.

    Any client error propagates; the caller decides whether it is fatal.
    """
    projects = await list_organization_projects(client)
    directory = ProjectDirectory.from_projects(projects)
    logger.info(
        "Project directory resolved",
        organization=client.organization_slug,
        projects=len(directory)
    )
    return directory
