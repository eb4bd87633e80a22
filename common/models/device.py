"""Device target and per-device run state models."""

from __future__ import annotations

import os
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from common.errors import ExclusionReason
from common.models.workload import TestKind


class DeviceStatus(str, Enum):
    """Per-device run status states."""
    PENDING = "pending"
    VALIDATING = "validating"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    EXCLUDED = "excluded"


class DeviceTarget(BaseModel):
    """A user-labelled storage mount point to benchmark."""
    model_config = ConfigDict(frozen=True)

    label: str = Field(..., description="User-chosen device label")
    path: str = Field(..., description="Filesystem mount path")

    @field_validator("label")
    @classmethod
    def validate_label(cls, v: str) -> str:
        """Labels become part of archive file names."""
        v = v.strip()
        if not v:
            raise ValueError("Device label must not be empty")
        if os.sep in v or (os.altsep and os.altsep in v):
            raise ValueError(f"Device label must not contain a path separator: {v}")
        return v


class ProfileFailure(BaseModel):
    """A single test that produced no metric for a device."""

    kind: TestKind
    error: str


class DeviceRun(BaseModel):
    """Run state of one device within an invocation."""
    target: DeviceTarget
    status: DeviceStatus = Field(default=DeviceStatus.PENDING)
    exclusion_reason: Optional[ExclusionReason] = None

    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    completed_tests: list[TestKind] = Field(default_factory=list)
    failures: list[ProfileFailure] = Field(default_factory=list)

    @property
    def label(self) -> str:
        return self.target.label

    @property
    def is_finished(self) -> bool:
        return self.status in [DeviceStatus.SUCCEEDED, DeviceStatus.EXCLUDED]

    def status_line(self) -> str:
        """Human-readable outcome for reports."""
        if self.status == DeviceStatus.EXCLUDED:
            reason = self.exclusion_reason.value if self.exclusion_reason else "unknown"
            return f"Excluded ({reason})"
        if self.status == DeviceStatus.SUCCEEDED:
            if self.failures:
                failed = ", ".join(f.kind.value for f in self.failures)
                return f"Succeeded ({len(self.failures)} test(s) failed: {failed})"
            return "Succeeded"
        return self.status.value.capitalize()
