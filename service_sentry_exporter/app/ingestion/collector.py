"""
Scrape-time collection of Sentry event counts.
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from shared.config import LabelMode
from shared.errors import ExporterException
from shared.logging import get_logger, set_scrape_id, clear_context
from shared.metrics import ServiceMetrics
from ..sentry.client import SentryClient
from ..sentry.events import EventCountsRequest, EventCountsResponse, retrieve_event_counts_v2
from .directory import ProjectDirectory

# Aggregate requested from the event counts endpoint
SUM_QUANTITY = "sum(quantity)"
# Project filter meaning "all projects"
ALL_PROJECTS = "-1"
STATS_PERIOD = "1h"
# Minimum interval the API accepts
INTERVAL = "1h"


class MetricFamily(str, Enum):
    """Metric families exported per project."""
    ERRORS = "errors"
    TRANSACTIONS = "transactions"


# Sentry data category queried for each family
FAMILY_CATEGORIES: Dict[MetricFamily, str] = {
    MetricFamily.ERRORS: "error",
    MetricFamily.TRANSACTIONS: "transaction",
}


@dataclass(frozen=True)
class Sample:
    """One exported value: a family, its labels and the upstream total."""
    family: MetricFamily
    value: float
    labels: Dict[str, str] = field(default_factory=dict)


def label_names(label_mode: LabelMode) -> Tuple[str, ...]:
    """Label names carried by every sample in the given mode."""
    if label_mode == LabelMode.WITH_SLUG:
        return ("project", "project_slug")
    return ("project",)


class SentryMetricsCollector:
    """Collects per-project error and transaction counts from Sentry.

    Each call to :meth:`collect` fetches both families concurrently. A family
    whose fetch fails is logged and left out of that scrape only.
    """

    def __init__(
        self,
        client: SentryClient,
        directory: Optional[ProjectDirectory] = None,
        label_mode: LabelMode = LabelMode.WITH_SLUG,
        metrics: Optional[ServiceMetrics] = None,
    ):
        self.client = client
        self.directory = directory if directory is not None else ProjectDirectory()
        self.label_mode = label_mode
        self.metrics = metrics
        self.logger = get_logger("sentry_exporter.collector")

    def build_request(self, family: MetricFamily) -> EventCountsRequest:
        """Event counts query for one family over the last hour."""
        return EventCountsRequest(
            field=SUM_QUANTITY,
            group_by=["project"],
            project=[ALL_PROJECTS],
            stats_period=STATS_PERIOD,
            interval=INTERVAL,
            category=FAMILY_CATEGORIES[family],
        )

    async def collect(self) -> List[Sample]:
        """Fetch both families and return every sample that succeeded.

        Returns only after both fetches have finished. Never raises for
        upstream failures.
        """
        set_scrape_id()
        queue: "asyncio.Queue[Sample]" = asyncio.Queue()

        try:
            if self.metrics:
                with self.metrics.time_scrape():
                    results = await self._fetch_all(queue)
            else:
                results = await self._fetch_all(queue)

            for family, result in zip(MetricFamily, results):
                if isinstance(result, BaseException):
                    self._report_failure(family, result)

            samples = []
            while not queue.empty():
                samples.append(queue.get_nowait())

            self.logger.debug("Scrape collected", samples=len(samples))
            return samples
        finally:
            clear_context()

    async def _fetch_all(self, queue: "asyncio.Queue[Sample]") -> list:
        return await asyncio.gather(
            *(self._collect_family(family, queue) for family in MetricFamily),
            return_exceptions=True,
        )

    async def _collect_family(self, family: MetricFamily, queue: "asyncio.Queue[Sample]") -> None:
        response = await retrieve_event_counts_v2(self.client, self.build_request(family))
        for sample in self.samples_from_response(family, response):
            queue.put_nowait(sample)

    def samples_from_response(self, family: MetricFamily, response: EventCountsResponse) -> List[Sample]:
        """Map each group of a response to a sample.

        Groups without a project id are skipped; a missing total counts as 0.
        """
        samples = []
        for group in response.groups:
            project_id = group.by.project
            if project_id is None:
                self.logger.warning("Group without project id skipped", family=family.value)
                continue

            labels = {"project": str(project_id)}
            if self.label_mode == LabelMode.WITH_SLUG:
                labels["project_slug"] = self.directory.slug_for(project_id)

            samples.append(Sample(
                family=family,
                value=float(group.totals.get(SUM_QUANTITY, 0)),
                labels=labels,
            ))
        return samples

    def _report_failure(self, family: MetricFamily, error: BaseException) -> None:
        if self.metrics:
            self.metrics.record_collection_error(family.value)

        if isinstance(error, ExporterException):
            self.logger.error(
                "Failed to collect metric family",
                family=family.value,
                code=error.code,
                error=error.message,
                details=error.details
            )
        else:
            self.logger.error(
                "Unexpected error collecting metric family",
                family=family.value,
                error=str(error),
                exc_info=error
            )
