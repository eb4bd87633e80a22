"""Metric extraction from fio JSON payloads."""

from __future__ import annotations

import logging
from typing import Any, NamedTuple

from common.errors import ExtractionError
from common.models.results import Metric, RawPayload
from common.models.workload import MetricFamily, TestKind

logger = logging.getLogger(__name__)

KB_PER_MB = 1024
NS_PER_MS = 1_000_000


class FieldRule(NamedTuple):
    """Where a test kind's metric lives in the payload and how to scale it."""
    family: MetricFamily
    path: tuple[str, ...]
    divisor: float


RULES: dict[TestKind, FieldRule] = {
    TestKind.SEQ_READ: FieldRule(MetricFamily.BANDWIDTH, ("read", "bw"), KB_PER_MB),
    TestKind.RAND_READ: FieldRule(MetricFamily.BANDWIDTH, ("read", "bw"), KB_PER_MB),
    TestKind.SEQ_WRITE: FieldRule(MetricFamily.BANDWIDTH, ("write", "bw"), KB_PER_MB),
    TestKind.RAND_WRITE: FieldRule(MetricFamily.BANDWIDTH, ("write", "bw"), KB_PER_MB),
    TestKind.IOPS: FieldRule(MetricFamily.IOPS, ("read", "iops"), 1),
    TestKind.LATENCY: FieldRule(MetricFamily.LATENCY, ("read", "lat_ns", "mean"), NS_PER_MS),
}


def _lookup(job: Any, path: tuple[str, ...]) -> Any:
    node = job
    for key in path:
        if not isinstance(node, dict) or key not in node:
            return None
        node = node[key]
    return node


class MetricExtractor:
    """Turn a raw payload into normalized metrics for one test kind."""

    def extract(self, kind: TestKind | str, payload: RawPayload | dict) -> list[Metric]:
        """Extract the metric(s) a test kind produces.

        Reads the first job of the document (jobs are group-reported).
        Raises ExtractionError when the expected field is absent or not
        numeric; a missing metric is never reported as zero here.
        """
        kind = TestKind(kind)
        rule = RULES[kind]
        document = payload.document if isinstance(payload, RawPayload) else payload
        field = "jobs[0]." + ".".join(rule.path)

        jobs = document.get("jobs") if isinstance(document, dict) else None
        if not isinstance(jobs, list) or not jobs:
            raise ExtractionError(kind.value, "jobs")

        raw = _lookup(jobs[0], rule.path)
        if raw is None or isinstance(raw, bool):
            raise ExtractionError(kind.value, field)
        try:
            value = float(raw) / rule.divisor
        except (TypeError, ValueError):
            raise ExtractionError(kind.value, field) from None

        logger.debug(f"Extracted {rule.family.value}={value} for {kind.value}")
        return [Metric(family=rule.family, value=value)]
