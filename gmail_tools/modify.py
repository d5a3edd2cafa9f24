from __future__ import annotations

from typing import Any, Callable, Optional

from .batch import MAX_BATCH_SIZE, BatchMutator, FailedBatch, MutationResult, MutationSpec
from .gmail import GmailClient
from .models import MessageRef
from .reports import batch_modify_report, trash_spam_report

DEFAULT_SPAM_RESULTS = 500

SPAM_LABEL = "SPAM"
TRASH_LABEL = "TRASH"
TRASH_SPAM = MutationSpec.of(add=[TRASH_LABEL], remove=[SPAM_LABEL])

ProgressFn = Callable[[int, int], None]
BatchErrorFn = Callable[[FailedBatch], None]


class ModifyRunner:
    """Write paths: list candidate ids, then mutate their labels in batches."""

    def __init__(self, gmail: GmailClient):
        self._gmail = gmail

    def _modify_group(self, ids: list[str], spec: MutationSpec) -> None:
        self._gmail.batch_modify(ids, add=spec.add_labels, remove=spec.remove_labels)

    def _mutate(
        self,
        refs: list[MessageRef],
        spec: MutationSpec,
        *,
        dry_run: bool,
        batch_size: int,
        on_progress: Optional[ProgressFn],
        on_batch_error: Optional[BatchErrorFn],
    ) -> MutationResult:
        mutator = BatchMutator(self._modify_group, batch_size=batch_size)
        return mutator.run(
            [r.id for r in refs],
            spec,
            dry_run=dry_run,
            on_progress=on_progress,
            on_batch_error=on_batch_error,
        )

    def batch_modify(
        self,
        query: str,
        spec: MutationSpec,
        *,
        max_results: Optional[int] = None,
        dry_run: bool = False,
        batch_size: int = MAX_BATCH_SIZE,
        on_progress: Optional[ProgressFn] = None,
        on_batch_error: Optional[BatchErrorFn] = None,
    ) -> dict[str, Any]:
        if not query:
            raise ValueError("--query is required.")
        if spec.is_empty():
            raise ValueError("--add-labels or --remove-labels (or both) is required.")
        refs = self._gmail.list_message_refs(q=query, max_results=max_results)
        result = self._mutate(
            refs,
            spec,
            dry_run=dry_run,
            batch_size=batch_size,
            on_progress=on_progress,
            on_batch_error=on_batch_error,
        )
        return batch_modify_report(query, spec, result)

    def trash_spam(
        self,
        *,
        max_results: int = DEFAULT_SPAM_RESULTS,
        dry_run: bool = False,
        batch_size: int = MAX_BATCH_SIZE,
        on_progress: Optional[ProgressFn] = None,
        on_batch_error: Optional[BatchErrorFn] = None,
    ) -> dict[str, Any]:
        refs = self._gmail.list_message_refs(
            label_ids=[SPAM_LABEL],
            include_spam_trash=True,
            max_results=max_results,
        )
        result = self._mutate(
            refs,
            TRASH_SPAM,
            dry_run=dry_run,
            batch_size=batch_size,
            on_progress=on_progress,
            on_batch_error=on_batch_error,
        )
        return trash_spam_report(result)
