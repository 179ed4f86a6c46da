"""
Sentry API client package.

A deliberately small client for the two Sentry REST endpoints the exporter
reads:

- events: organization event counts (stats v2), grouped by project.
- projects: the organization's project list, used to resolve slugs.

The client owns URL composition, bearer authentication, per-request
timeouts, and the mapping of transport, status and decode failures onto
shared errors. It never retries.
"""

from .client import RequestParams, SentryClient, SentryClientConfig
from .events import EventCountsGroup, EventCountsRequest, EventCountsResponse, retrieve_event_counts_v2
from .projects import Project, list_organization_projects

__all__ = [
    "RequestParams",
    "SentryClient",
    "SentryClientConfig",
    "EventCountsGroup",
    "EventCountsRequest",
    "EventCountsResponse",
    "retrieve_event_counts_v2",
    "Project",
    "list_organization_projects",
]
