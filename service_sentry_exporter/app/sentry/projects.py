"""
Organization projects endpoint of the Sentry API.

https://docs.sentry.io/api/organizations/list-an-organizations-projects/
"""

from typing import List

from pydantic import BaseModel, ConfigDict

from .client import RequestParams, SentryClient

OPERATION = "list_organization_projects"


class Project(BaseModel):
    """A project as listed by the organization projects endpoint."""
    model_config = ConfigDict(extra="ignore")

    id: str
    slug: str


async def list_organization_projects(client: SentryClient) -> List[Project]:
    """List the projects of the client's organization."""
    params = RequestParams(
        method="GET",
        sub_path=f"organizations/{client.organization_slug}/projects/",
        operation=OPERATION,
    )
    return await client.request(params, List[Project])
