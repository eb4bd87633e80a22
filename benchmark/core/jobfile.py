"""fio job descriptor and its job-file encoder."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from common.models.workload import WorkloadProfile


class FioJob(BaseModel):
    """Everything fio needs to run one profile against one target file."""
    model_config = ConfigDict(frozen=True)

    name: str
    rw: str
    block_size: str
    size: str
    io_depth: int = Field(ge=1)
    num_jobs: int = Field(ge=1)
    direct_io: bool = True
    runtime: int = Field(ge=1)
    ioengine: str = "libaio"
    filename: str

    @classmethod
    def from_profile(cls, profile: WorkloadProfile, target_file: str | Path) -> "FioJob":
        return cls(
            name=profile.kind.value,
            rw=profile.rw,
            block_size=profile.block_size,
            size=profile.size,
            io_depth=profile.io_depth,
            num_jobs=profile.num_jobs,
            direct_io=profile.direct_io,
            runtime=profile.runtime,
            ioengine=profile.ioengine,
            filename=str(target_file),
        )


def _section(title: str, options: list[tuple[str, object]]) -> list[str]:
    lines = [f"[{title}]"]
    lines.extend(f"{key}={value}" for key, value in options)
    return lines


def encode_job(job: FioJob) -> str:
    """Render a job as fio ini text."""
    global_options = [
        ("ioengine", job.ioengine),
        ("direct", int(job.direct_io)),
        ("time_based", 1),
        ("runtime", job.runtime),
        ("group_reporting", 1),
    ]
    job_options = [
        ("name", job.name),
        ("filename", job.filename),
        ("rw", job.rw),
        ("bs", job.block_size),
        ("size", job.size),
        ("iodepth", job.io_depth),
        ("numjobs", job.num_jobs),
    ]
    lines = _section("global", global_options) + [""] + _section(job.name, job_options)
    return "\n".join(lines) + "\n"


def write_job_file(job: FioJob, path: str | Path) -> Path:
    """Write an encoded job file and return its path."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(encode_job(job))
    return path
