"""
Event counts endpoint of the Sentry API.

https://docs.sentry.io/api/organizations/retrieve-event-counts-for-an-organization-v2/
"""

import dataclasses
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .client import RequestParams, SentryClient

OPERATION = "retrieve_event_counts_v2"


class EventCountsGroupBy(BaseModel):
    """Dimensions a group is keyed by."""
    model_config = ConfigDict(extra="ignore")

    project: Optional[int] = None
    outcome: Optional[Union[int, str]] = None


class EventCountsGroup(BaseModel):
    """One row of an aggregated event counts response."""
    model_config = ConfigDict(extra="ignore")

    by: EventCountsGroupBy = Field(default_factory=EventCountsGroupBy)
    totals: Dict[str, float] = {}
    series: Dict[str, List[float]] = {}


class EventCountsResponse(BaseModel):
    """Event counts for an organization."""
    model_config = ConfigDict(extra="ignore")

    start: str = ""
    end: str = ""
    intervals: List[str] = []
    groups: List[EventCountsGroup] = []


@dataclasses.dataclass(frozen=True)
class EventCountsRequest:
    """Query for the event counts endpoint.

    ``field`` and ``group_by`` are required by the API. Optional values left
    empty are not sent.
    """
    field: str
    group_by: List[str]
    project: List[str] = dataclasses.field(default_factory=list)
    stats_period: str = ""
    interval: str = ""
    start: str = ""
    end: str = ""
    category: str = ""
    outcome: str = ""
    reason: str = ""

    def to_params(self, organization_slug: str) -> RequestParams:
        queries = {"field": self.field}
        optional = {
            "statsPeriod": self.stats_period,
            "interval": self.interval,
            "start": self.start,
            "end": self.end,
            "category": self.category,
            "outcome": self.outcome,
            "reason": self.reason,
        }
        queries.update({key: value for key, value in optional.items() if value})

        return RequestParams(
            method="GET",
            sub_path=f"organizations/{organization_slug}/stats_v2/",
            queries=queries,
            array_queries={"groupBy": list(self.group_by), "project": list(self.project)},
            operation=OPERATION,
        )


async def retrieve_event_counts_v2(client: SentryClient, request: EventCountsRequest) -> EventCountsResponse:
    """Retrieve event counts for the client's organization."""
    params = request.to_params(client.organization_slug)
    return await client.request(params, EventCountsResponse)
