"""Result storage for benchmark runs."""

from common.storage.result_store import ResultStore, archive_name

__all__ = ["ResultStore", "archive_name"]
