"""Mutations that span the principal and entry collections.

Only this module writes a principal's owned-entry list. Each operation is
applied entirely or not at all: inside a store transaction when the document
store offers one, otherwise by replaying recorded compensations in reverse.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import replace
from datetime import UTC, datetime
from functools import partial
import logging
from typing import TypeVar

from journal_api.core.logging_safety import safe_log_identifier, safe_log_identifiers
from journal_api.domain.authorization import AuthorizationGuard
from journal_api.domain.entries import EntryDraft, EntryPatch
from journal_api.domain.outcomes import Outcome
from journal_api.errors import InconsistentStateError, TransactionAborted
from journal_api.repositories.entries import EntryStore
from journal_api.repositories.memory import EntryRecord, InMemoryDocumentStore, WriteConflictError
from journal_api.repositories.principals import PrincipalStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _utc_now() -> datetime:
    return datetime.now(UTC)


def dangling_reference_error(username: str, entry_ids: list[str]) -> InconsistentStateError:
    """Build (and report to operators) the error for owned ids with no entry record."""
    logger.critical(
        "coordinator.inconsistent_state principal_id=%s dangling_entry_ids=%s",
        safe_log_identifier(username, prefix="pid"),
        safe_log_identifiers(entry_ids, prefix="eid"),
    )
    return InconsistentStateError(
        "Owned entry reference has no matching entry record",
        username=username,
        entry_ids=entry_ids,
    )


class _CompensationLog:
    def __init__(self) -> None:
        self._steps: list[tuple[str, Callable[[], object]]] = []

    def record(self, step: str, undo: Callable[[], object]) -> None:
        self._steps.append((step, undo))

    def rollback(self, operation: str) -> None:
        failed_steps: list[str] = []
        while self._steps:
            step, undo = self._steps.pop()
            try:
                undo()
            except Exception as exc:
                logger.error(
                    "coordinator.compensation_failed operation=%s step=%s reason=%s",
                    operation,
                    step,
                    type(exc).__name__,
                )
                failed_steps.append(step)
        if failed_steps:
            raise InconsistentStateError(
                f"{operation} could not be rolled back (failed steps: {', '.join(failed_steps)})"
            )


class _TransactionLog(_CompensationLog):
    """The store aborts natively; nothing to replay."""

    def record(self, step: str, undo: Callable[[], object]) -> None:
        return None


class ConsistencyCoordinator:
    def __init__(
        self,
        *,
        store: InMemoryDocumentStore,
        principals: PrincipalStore,
        entries: EntryStore,
        guard: AuthorizationGuard,
        write_conflict_retries: int = 2,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._store = store
        self._principals = principals
        self._entries = entries
        self._guard = guard
        self._write_conflict_retries = write_conflict_retries
        self._clock = clock

    def create_entry(self, *, username: str, draft: EntryDraft) -> Outcome[EntryRecord]:
        return self._with_retries("create_entry", username, partial(self._create_entry, username, draft))

    def update_entry(self, *, username: str, entry_id: str, patch: EntryPatch) -> Outcome[EntryRecord]:
        return self._with_retries("update_entry", username, partial(self._update_entry, username, entry_id, patch))

    def delete_entry(self, *, username: str, entry_id: str) -> Outcome[None]:
        return self._with_retries("delete_entry", username, partial(self._delete_entry, username, entry_id))

    def delete_user(self, *, username: str) -> Outcome[None]:
        return self._with_retries("delete_user", username, partial(self._delete_user, username))

    def _create_entry(self, username: str, draft: EntryDraft) -> Outcome[EntryRecord]:
        created_at = self._clock()
        with self._atomic("create_entry") as undo:
            principal = self._principals.find_by_username(username)
            if principal is None:
                return Outcome.not_found()

            entry = self._entries.create(title=draft.title, content=draft.content, created_at=created_at)
            undo.record("insert_entry", partial(self._entries.delete, entry.id))

            self._principals.save(replace(principal, entry_ids=[*principal.entry_ids, entry.id]))

        logger.info(
            "coordinator.entry_created principal_id=%s entry_id=%s",
            safe_log_identifier(username, prefix="pid"),
            safe_log_identifier(entry.id, prefix="eid"),
        )
        return Outcome.ok(entry)

    def _update_entry(self, username: str, entry_id: str, patch: EntryPatch) -> Outcome[EntryRecord]:
        with self._atomic("update_entry"):
            principal = self._principals.find_by_username(username)
            if principal is None:
                return Outcome.not_found()

            decision = self._guard.authorize(principal, entry_id)
            if not decision.is_ok:
                return Outcome(decision.status)

            current = self._load_owned_entry(username, entry_id)
            if patch.is_empty:
                return Outcome.ok(current)
            updated = self._entries.save(patch.apply(current))

        logger.info(
            "coordinator.entry_updated principal_id=%s entry_id=%s",
            safe_log_identifier(username, prefix="pid"),
            safe_log_identifier(entry_id, prefix="eid"),
        )
        return Outcome.ok(updated)

    def _delete_entry(self, username: str, entry_id: str) -> Outcome[None]:
        with self._atomic("delete_entry") as undo:
            principal = self._principals.find_by_username(username)
            if principal is None:
                return Outcome.not_found()

            decision = self._guard.authorize(principal, entry_id)
            if not decision.is_ok:
                return decision

            entry = self._load_owned_entry(username, entry_id)
            remaining = [owned_id for owned_id in principal.entry_ids if owned_id != entry_id]
            self._principals.save(replace(principal, entry_ids=remaining))
            undo.record("remove_entry_reference", partial(self._principals.restore, principal))

            self._entries.delete(entry_id)
            undo.record("delete_entry", partial(self._entries.restore, entry))

        logger.info(
            "coordinator.entry_deleted principal_id=%s entry_id=%s",
            safe_log_identifier(username, prefix="pid"),
            safe_log_identifier(entry_id, prefix="eid"),
        )
        return Outcome.ok()

    def _delete_user(self, username: str) -> Outcome[None]:
        with self._atomic("delete_user") as undo:
            principal = self._principals.find_by_username(username)
            if principal is None:
                return Outcome.not_found()

            owned, missing = self._entries.get_many(principal.entry_ids)
            if missing:
                raise dangling_reference_error(username, missing)

            for entry in owned:
                self._entries.delete(entry.id)
                undo.record("delete_entry", partial(self._entries.restore, entry))

            self._principals.delete(principal.id)
            undo.record("delete_principal", partial(self._principals.restore, principal))

        logger.info(
            "coordinator.user_deleted principal_id=%s entry_count=%s",
            safe_log_identifier(username, prefix="pid"),
            len(owned),
        )
        return Outcome.ok()

    def _load_owned_entry(self, username: str, entry_id: str) -> EntryRecord:
        entry = self._entries.get(entry_id)
        if entry is None:
            raise dangling_reference_error(username, [entry_id])
        return entry

    @contextmanager
    def _atomic(self, operation: str) -> Iterator[_CompensationLog]:
        if self._store.supports_transactions:
            try:
                with self._store.transaction():
                    yield _TransactionLog()
            except (InconsistentStateError, TransactionAborted):
                raise
            except Exception as exc:
                raise TransactionAborted(operation, str(exc)) from exc
            return

        log = _CompensationLog()
        try:
            yield log
        except InconsistentStateError:
            log.rollback(operation)
            raise
        except Exception as exc:
            log.rollback(operation)
            raise TransactionAborted(operation, str(exc)) from exc

    def _with_retries(self, operation: str, username: str, attempt_fn: Callable[[], Outcome[T]]) -> Outcome[T]:
        attempt = 0
        while True:
            attempt += 1
            try:
                return attempt_fn()
            except TransactionAborted as exc:
                retryable = isinstance(exc.__cause__, WriteConflictError)
                if retryable and attempt <= self._write_conflict_retries:
                    logger.warning(
                        "coordinator.retrying operation=%s principal_id=%s attempt=%s reason=write_conflict",
                        operation,
                        safe_log_identifier(username, prefix="pid"),
                        attempt,
                    )
                    continue
                logger.warning(
                    "coordinator.aborted operation=%s principal_id=%s attempts=%s reason=%s",
                    operation,
                    safe_log_identifier(username, prefix="pid"),
                    attempt,
                    type(exc.__cause__).__name__ if exc.__cause__ is not None else "unknown",
                )
                raise
