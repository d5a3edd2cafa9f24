from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence, Union

from .errors import describe_error

# users.messages.batchModify accepts at most this many ids per call.
MAX_BATCH_SIZE = 100


@dataclass(frozen=True)
class MutationSpec:
    add_labels: tuple[str, ...] = ()
    remove_labels: tuple[str, ...] = ()

    @classmethod
    def of(cls, add: Sequence[str] = (), remove: Sequence[str] = ()) -> "MutationSpec":
        return cls(add_labels=tuple(add), remove_labels=tuple(remove))

    def is_empty(self) -> bool:
        return not self.add_labels and not self.remove_labels


@dataclass(frozen=True)
class FailedBatch:
    batch_index: int
    size: int
    error: str

    def to_dict(self) -> dict[str, Any]:
        return {"batch_index": self.batch_index, "size": self.size, "error": self.error}


@dataclass
class MutationSummary:
    total_count: int = 0
    mutated_count: int = 0
    failed_batches: list[FailedBatch] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.failed_batches


@dataclass(frozen=True)
class MutationPreview:
    # Dry run: what would have been mutated.
    total_count: int
    ids: list[str]


MutationResult = Union[MutationSummary, MutationPreview]
ModifyFn = Callable[[list[str], MutationSpec], Any]


def clamp_batch_size(batch_size: int) -> int:
    return max(1, min(int(batch_size), MAX_BATCH_SIZE))


def partition(ids: Sequence[str], size: int) -> list[list[str]]:
    return [list(ids[i : i + size]) for i in range(0, len(ids), size)]


class BatchMutator:
    """
    Apply one label mutation to many message ids, one API call per group.

    A failing group is recorded and skipped; the remaining groups still run.
    """

    def __init__(self, modify: ModifyFn, *, batch_size: int = MAX_BATCH_SIZE):
        self._modify = modify
        self.batch_size = clamp_batch_size(batch_size)

    def run(
        self,
        ids: Sequence[str],
        spec: MutationSpec,
        *,
        dry_run: bool = False,
        on_progress: Optional[Callable[[int, int], None]] = None,
        on_batch_error: Optional[Callable[[FailedBatch], None]] = None,
    ) -> MutationResult:
        total = len(ids)
        if total == 0:
            return MutationSummary()
        if dry_run:
            return MutationPreview(total_count=total, ids=list(ids))
        if spec.is_empty():
            raise ValueError("At least one label to add or remove is required.")

        summary = MutationSummary(total_count=total)
        for index, group in enumerate(partition(ids, self.batch_size)):
            try:
                self._modify(group, spec)
            except Exception as exc:
                failed = FailedBatch(batch_index=index, size=len(group), error=describe_error(exc))
                summary.failed_batches.append(failed)
                if on_batch_error:
                    on_batch_error(failed)
                continue
            summary.mutated_count += len(group)
            if on_progress:
                on_progress(summary.mutated_count, total)
        return summary
