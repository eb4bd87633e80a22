"""Device discovery inside a run directory.

Device identities are recovered from the archive naming contract
``<label>_<suffix>.json``; if no archive matches, the first column of
the bandwidth table is used instead. Keep all knowledge of file naming
in this module so the aggregator does not depend on it.
"""

from __future__ import annotations

import logging
from typing import Optional

import yaml

from common.models.workload import MetricFamily, TestKind
from common.storage.result_store import ResultStore

logger = logging.getLogger(__name__)

ARCHIVE_SUFFIXES = tuple(f"_{kind.archive_suffix}.json" for kind in TestKind)


def device_from_archive_name(filename: str) -> Optional[str]:
    """Strip a known test-kind suffix from an archive file name."""
    for suffix in ARCHIVE_SUFFIXES:
        if filename.endswith(suffix) and len(filename) > len(suffix):
            return filename[: -len(suffix)]
    return None


def _unique(items) -> list[str]:
    seen: set[str] = set()
    ordered = []
    for item in items:
        if item and item not in seen:
            seen.add(item)
            ordered.append(item)
    return ordered


def devices_from_table(store: ResultStore) -> list[str]:
    return _unique(row.device for row in store.iter_rows(MetricFamily.BANDWIDTH))


def recorded_order(store: ResultStore) -> list[str]:
    """Labels in the order the run recorded them.

    The config snapshot lists devices in run order; labels it lacks follow
    in bandwidth table order.
    """
    labels = []
    try:
        config = store.load_config() or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Cannot read config snapshot in {store.run_dir}: {e}")
        config = {}
    if not isinstance(config, dict):
        config = {}
    for entry in config.get("devices") or []:
        if isinstance(entry, dict):
            labels.append(entry.get("label"))
    labels.extend(devices_from_table(store))
    return _unique(labels)


def devices_from_archives(store: ResultStore) -> list[str]:
    """Archive-derived labels in run order.

    Labels the run did not record keep archive modification-time order.
    """
    devices = _unique(device_from_archive_name(p.name) for p in store.archive_files())
    rank = {label: i for i, label in enumerate(recorded_order(store))}
    return sorted(devices, key=lambda label: rank.get(label, len(rank)))


def discover_devices(store: ResultStore) -> list[str]:
    """Device identities in a run directory, in first-occurrence order."""
    devices = devices_from_archives(store)
    if devices:
        return devices

    devices = devices_from_table(store)
    if devices:
        logger.info(f"No payload archives matched in {store.run_dir}; using bandwidth table")
    return devices
