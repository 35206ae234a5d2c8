"""Journal entry service layer."""

from journal_api.domain.authorization import AuthorizationGuard
from journal_api.domain.entries import EntryDraft, EntryPatch
from journal_api.domain.outcomes import Outcome, OutcomeStatus
from journal_api.errors import ApiError
from journal_api.repositories.entries import EntryStore
from journal_api.repositories.memory import EntryRecord
from journal_api.repositories.principals import PrincipalStore
from journal_api.schemas.entry import JournalEntry
from journal_api.services.coordinator import ConsistencyCoordinator, dangling_reference_error


def not_found_error() -> ApiError:
    return ApiError(status_code=404, code="RESOURCE_NOT_FOUND", message="Resource not found")


def raise_for_outcome(outcome: Outcome, *, conceal_forbidden: bool = False) -> None:
    """Translate a non-OK outcome into the transport error contract."""
    if outcome.status is OutcomeStatus.OK:
        return
    if outcome.status is OutcomeStatus.FORBIDDEN and not conceal_forbidden:
        raise ApiError(status_code=403, code="FORBIDDEN", message="Resource belongs to another principal")
    if outcome.status is OutcomeStatus.CONFLICT:
        raise ApiError(status_code=409, code="USERNAME_TAKEN", message="Username is already taken")
    raise not_found_error()


class JournalService:
    def __init__(
        self,
        *,
        coordinator: ConsistencyCoordinator,
        principals: PrincipalStore,
        entries: EntryStore,
        guard: AuthorizationGuard,
        conceal_forbidden: bool = False,
    ) -> None:
        self._coordinator = coordinator
        self._principals = principals
        self._entries = entries
        self._guard = guard
        self._conceal_forbidden = conceal_forbidden

    def create_entry(self, *, username: str, title: str, content: str) -> JournalEntry:
        outcome = self._coordinator.create_entry(username=username, draft=EntryDraft(title=title, content=content))
        raise_for_outcome(outcome, conceal_forbidden=self._conceal_forbidden)
        return self._to_entry(outcome.unwrap())

    def list_entries(self, *, username: str) -> list[JournalEntry]:
        principal = self._principals.find_by_username(username)
        if principal is None:
            raise not_found_error()

        # The owned-entry list is the ownership set; no per-entry check needed.
        found, missing = self._entries.get_many(principal.entry_ids)
        if missing:
            raise dangling_reference_error(username, missing)
        return [self._to_entry(record) for record in found]

    def get_entry(self, *, username: str, entry_id: str) -> JournalEntry:
        principal = self._principals.find_by_username(username)
        if principal is None:
            raise not_found_error()

        raise_for_outcome(self._guard.authorize(principal, entry_id), conceal_forbidden=self._conceal_forbidden)
        record = self._entries.get(entry_id)
        if record is None:
            raise dangling_reference_error(username, [entry_id])
        return self._to_entry(record)

    def update_entry(
        self,
        *,
        username: str,
        entry_id: str,
        title: str | None,
        content: str | None,
    ) -> JournalEntry:
        outcome = self._coordinator.update_entry(
            username=username,
            entry_id=entry_id,
            patch=EntryPatch(title=title, content=content),
        )
        raise_for_outcome(outcome, conceal_forbidden=self._conceal_forbidden)
        return self._to_entry(outcome.unwrap())

    def delete_entry(self, *, username: str, entry_id: str) -> None:
        outcome = self._coordinator.delete_entry(username=username, entry_id=entry_id)
        raise_for_outcome(outcome, conceal_forbidden=self._conceal_forbidden)

    def list_all_entries(self) -> list[JournalEntry]:
        return [self._to_entry(record) for record in self._entries.list_all()]

    @staticmethod
    def _to_entry(record: EntryRecord) -> JournalEntry:
        return JournalEntry(
            id=record.id,
            title=record.title,
            content=record.content,
            created_at=record.created_at,
        )
