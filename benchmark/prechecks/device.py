"""Device target validation."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from pydantic import ValidationError

from common.errors import ConfigError, DeviceValidationError, ExclusionReason
from common.models.device import DeviceTarget

logger = logging.getLogger(__name__)


def parse_targets(args: list[str]) -> list[DeviceTarget]:
    """Turn ``label path [label path ...]`` arguments into targets."""
    if len(args) < 2 or len(args) % 2 != 0:
        raise ConfigError("Need label/path pairs for each device")

    targets = []
    seen: set[str] = set()
    for label, path in zip(args[0::2], args[1::2]):
        try:
            target = DeviceTarget(label=label, path=path)
        except ValidationError as e:
            raise ConfigError(f"Invalid device label {label!r}: {e.errors()[0]['msg']}") from e
        if target.label in seen:
            raise ConfigError(f"Duplicate device label: {target.label}")
        seen.add(target.label)
        targets.append(target)
    return targets


def validate_target(target: DeviceTarget) -> None:
    """Check that the target path exists and is writable."""
    path = Path(target.path)
    if not path.is_dir():
        raise DeviceValidationError(target.label, target.path, ExclusionReason.PATH_MISSING)
    if not os.access(path, os.W_OK):
        raise DeviceValidationError(target.label, target.path, ExclusionReason.NOT_WRITABLE)
    logger.debug(f"Device {target.label} validated: {target.path}")
