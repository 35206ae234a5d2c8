"""Atomicity, cascade and retry behavior of the consistency coordinator."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
import unittest

from journal_api.domain.authorization import AuthorizationGuard
from journal_api.domain.entries import EntryDraft, EntryPatch
from journal_api.domain.outcomes import OutcomeStatus
from journal_api.domain.roles import Role
from journal_api.errors import InconsistentStateError, TransactionAborted
from journal_api.repositories.entries import EntryStore
from journal_api.repositories.memory import InMemoryDocumentStore, WriteConflictError
from journal_api.repositories.principals import PrincipalStore
from journal_api.services.coordinator import ConsistencyCoordinator


class _TickingClock:
    def __init__(self) -> None:
        self._now = datetime(2024, 1, 1, 9, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        self._now += timedelta(minutes=1)
        return self._now


class _RacingEntryStore(EntryStore):
    """Simulates a concurrent principal write landing between the read and the save."""

    def __init__(self, store: InMemoryDocumentStore, principals: PrincipalStore, username: str, races: int) -> None:
        super().__init__(store)
        self._principals = principals
        self._username = username
        self.races = races

    def create(self, **kwargs):  # type: ignore[override]
        record = super().create(**kwargs)
        if self.races > 0:
            self.races -= 1
            concurrent = self._principals.find_by_username(self._username)
            self._principals.save(concurrent)
        return record


class _CoordinatorCase(unittest.TestCase):
    supports_transactions = True

    def setUp(self) -> None:
        self.store = InMemoryDocumentStore(supports_transactions=self.supports_transactions)
        self.principals = PrincipalStore(self.store)
        self.entries = EntryStore(self.store)
        self.coordinator = self._coordinator(self.entries)
        self.principals.create(username="ram", credential_hash="hash", roles={Role.USER})
        self.principals.create(username="shyam", credential_hash="hash", roles={Role.USER})

    def _coordinator(self, entries: EntryStore, *, retries: int = 2) -> ConsistencyCoordinator:
        return ConsistencyCoordinator(
            store=self.store,
            principals=self.principals,
            entries=entries,
            guard=AuthorizationGuard(entries),
            write_conflict_retries=retries,
            clock=_TickingClock(),
        )

    def _create(self, username: str, title: str, content: str = "") -> str:
        outcome = self.coordinator.create_entry(username=username, draft=EntryDraft(title=title, content=content))
        self.assertTrue(outcome.is_ok)
        return outcome.unwrap().id

    def _owned(self, username: str) -> list[str]:
        return self.store.find_principal_by_username(username).entry_ids


class TransactionalCoordinatorTests(_CoordinatorCase):
    supports_transactions = True

    def test_create_entry_links_new_entry_to_owner(self) -> None:
        outcome = self.coordinator.create_entry(username="ram", draft=EntryDraft(title="Morning", content="Gym"))

        self.assertEqual(outcome.status, OutcomeStatus.OK)
        entry = outcome.unwrap()
        self.assertEqual(self._owned("ram"), [entry.id])
        self.assertEqual(self.store.entries[entry.id].title, "Morning")
        self.assertEqual(entry.created_at, datetime(2024, 1, 1, 9, 1, tzinfo=UTC))
        self.assertEqual(self.store.entry_write_count, 1)

    def test_create_entry_for_unknown_principal_writes_nothing(self) -> None:
        outcome = self.coordinator.create_entry(username="ghost", draft=EntryDraft(title="Boo"))

        self.assertEqual(outcome.status, OutcomeStatus.NOT_FOUND)
        self.assertEqual(self.store.entries, {})
        self.assertEqual(self.store.entry_write_count, 0)

    def test_create_entry_leaves_no_trace_when_principal_write_fails(self) -> None:
        self.store.fail_next("principals", "replace")

        with self.assertRaises(TransactionAborted) as ctx:
            self.coordinator.create_entry(username="ram", draft=EntryDraft(title="Lost"))

        self.assertEqual(ctx.exception.operation, "create_entry")
        self.assertIsInstance(ctx.exception.__cause__, RuntimeError)
        self.assertEqual(self.store.entries, {})
        self.assertEqual(self._owned("ram"), [])

    def test_delete_entry_removes_reference_and_record(self) -> None:
        keep = self._create("ram", "Keep")
        drop = self._create("ram", "Drop")

        outcome = self.coordinator.delete_entry(username="ram", entry_id=drop)

        self.assertEqual(outcome.status, OutcomeStatus.OK)
        self.assertEqual(self._owned("ram"), [keep])
        self.assertNotIn(drop, self.store.entries)

    def test_delete_entry_restores_reference_when_entry_delete_fails(self) -> None:
        entry_id = self._create("ram", "Sticky")
        self.store.fail_next("entries", "delete")

        with self.assertRaises(TransactionAborted):
            self.coordinator.delete_entry(username="ram", entry_id=entry_id)

        self.assertEqual(self._owned("ram"), [entry_id])
        self.assertIn(entry_id, self.store.entries)

    def test_delete_entry_twice_reports_not_found_and_writes_nothing(self) -> None:
        entry_id = self._create("ram", "Once")
        self.coordinator.delete_entry(username="ram", entry_id=entry_id)
        principal_writes = self.store.principal_write_count
        entry_writes = self.store.entry_write_count

        outcome = self.coordinator.delete_entry(username="ram", entry_id=entry_id)

        self.assertEqual(outcome.status, OutcomeStatus.NOT_FOUND)
        self.assertEqual(self.store.principal_write_count, principal_writes)
        self.assertEqual(self.store.entry_write_count, entry_writes)

    def test_delete_entry_of_other_principal_is_forbidden_without_writes(self) -> None:
        entry_id = self._create("ram", "Private")
        principal_writes = self.store.principal_write_count
        entry_writes = self.store.entry_write_count

        outcome = self.coordinator.delete_entry(username="shyam", entry_id=entry_id)

        self.assertEqual(outcome.status, OutcomeStatus.FORBIDDEN)
        self.assertEqual(self.store.principal_write_count, principal_writes)
        self.assertEqual(self.store.entry_write_count, entry_writes)
        self.assertEqual(self._owned("ram"), [entry_id])

    def test_update_entry_applies_only_non_empty_fields(self) -> None:
        entry_id = self._create("ram", "Morning", "Gym")
        created_at = self.store.entries[entry_id].created_at
        principal_writes = self.store.principal_write_count

        outcome = self.coordinator.update_entry(username="ram", entry_id=entry_id, patch=EntryPatch(title="X"))

        updated = outcome.unwrap()
        self.assertEqual((updated.title, updated.content, updated.created_at), ("X", "Gym", created_at))
        self.assertEqual(self.store.principal_write_count, principal_writes)

    def test_empty_update_returns_entry_without_writing(self) -> None:
        entry_id = self._create("ram", "Morning", "Gym")
        entry_writes = self.store.entry_write_count

        outcome = self.coordinator.update_entry(
            username="ram",
            entry_id=entry_id,
            patch=EntryPatch(title="", content=None),
        )

        self.assertEqual(outcome.unwrap().title, "Morning")
        self.assertEqual(self.store.entry_write_count, entry_writes)

    def test_update_entry_of_other_principal_is_forbidden(self) -> None:
        entry_id = self._create("ram", "Private")

        outcome = self.coordinator.update_entry(username="shyam", entry_id=entry_id, patch=EntryPatch(title="Mine"))

        self.assertEqual(outcome.status, OutcomeStatus.FORBIDDEN)
        self.assertEqual(self.store.entries[entry_id].title, "Private")

    def test_delete_user_cascades_to_every_owned_entry(self) -> None:
        owned = [self._create("ram", f"Entry {index}") for index in range(3)]
        other = self._create("shyam", "Unrelated")

        outcome = self.coordinator.delete_user(username="ram")

        self.assertEqual(outcome.status, OutcomeStatus.OK)
        self.assertIsNone(self.store.find_principal_by_username("ram"))
        for entry_id in owned:
            self.assertNotIn(entry_id, self.store.entries)
        self.assertEqual(list(self.store.entries), [other])

    def test_delete_user_without_entries_removes_only_principal(self) -> None:
        outcome = self.coordinator.delete_user(username="shyam")

        self.assertTrue(outcome.is_ok)
        self.assertIsNone(self.store.find_principal_by_username("shyam"))
        self.assertIsNotNone(self.store.find_principal_by_username("ram"))

    def test_delete_unknown_user_is_not_found(self) -> None:
        self.assertEqual(self.coordinator.delete_user(username="ghost").status, OutcomeStatus.NOT_FOUND)

    def test_delete_user_keeps_everything_when_principal_delete_fails(self) -> None:
        owned = [self._create("ram", f"Entry {index}") for index in range(3)]
        self.store.fail_next("principals", "delete")

        with self.assertRaises(TransactionAborted):
            self.coordinator.delete_user(username="ram")

        self.assertEqual(self._owned("ram"), owned)
        for entry_id in owned:
            self.assertIn(entry_id, self.store.entries)

    def test_dangling_reference_is_raised_and_nothing_is_written(self) -> None:
        entry_id = self._create("ram", "Ghost")
        del self.store.entries[entry_id]
        principal_writes = self.store.principal_write_count

        for call in (
            lambda: self.coordinator.delete_entry(username="ram", entry_id=entry_id),
            lambda: self.coordinator.update_entry(username="ram", entry_id=entry_id, patch=EntryPatch(title="X")),
            lambda: self.coordinator.delete_user(username="ram"),
        ):
            with self.subTest(call=call), self.assertLogs("journal_api.services.coordinator", level="CRITICAL"):
                with self.assertRaises(InconsistentStateError) as ctx:
                    call()
                self.assertEqual(ctx.exception.entry_ids, [entry_id])

        self.assertEqual(self._owned("ram"), [entry_id])
        self.assertEqual(self.store.principal_write_count, principal_writes)

    def test_write_conflict_is_retried_then_succeeds(self) -> None:
        racing = _RacingEntryStore(self.store, self.principals, "ram", races=1)
        coordinator = self._coordinator(racing, retries=2)

        with self.assertLogs("journal_api.services.coordinator", level="WARNING") as logs:
            outcome = coordinator.create_entry(username="ram", draft=EntryDraft(title="Contended"))

        self.assertTrue(outcome.is_ok)
        self.assertEqual(self._owned("ram"), [outcome.unwrap().id])
        self.assertEqual(list(self.store.entries), [outcome.unwrap().id])
        self.assertTrue(any("coordinator.retrying" in line for line in logs.output))

    def test_write_conflict_aborts_after_retries_are_exhausted(self) -> None:
        racing = _RacingEntryStore(self.store, self.principals, "ram", races=5)
        coordinator = self._coordinator(racing, retries=1)

        with self.assertRaises(TransactionAborted) as ctx:
            coordinator.create_entry(username="ram", draft=EntryDraft(title="Contended"))

        self.assertIsInstance(ctx.exception.__cause__, WriteConflictError)
        self.assertEqual(self.store.entries, {})
        self.assertEqual(self._owned("ram"), [])


class CompensatingCoordinatorTests(TransactionalCoordinatorTests):
    """Same behavior when the store has no multi-document transactions."""

    supports_transactions = False

    def test_compensation_failure_surfaces_inconsistent_state(self) -> None:
        self.store.fail_next("principals", "replace")
        self.store.fail_next("entries", "delete", message="undo failed")

        with self.assertLogs("journal_api.services.coordinator", level="ERROR") as logs:
            with self.assertRaises(InconsistentStateError):
                self.coordinator.create_entry(username="ram", draft=EntryDraft(title="Stranded"))

        self.assertTrue(any("coordinator.compensation_failed" in line for line in logs.output))
        self.assertEqual(len(self.store.entries), 1)
        self.assertEqual(self._owned("ram"), [])


if __name__ == "__main__":
    unittest.main()
