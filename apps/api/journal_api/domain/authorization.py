"""Entry ownership checks."""

from __future__ import annotations

import logging

from journal_api.core.logging_safety import safe_log_identifier
from journal_api.domain.outcomes import Outcome
from journal_api.repositories.entries import EntryStore
from journal_api.repositories.memory import PrincipalRecord

logger = logging.getLogger(__name__)


class AuthorizationGuard:
    """Decides whether a resolved principal may act on a specific entry.

    Ownership is defined solely by the principal's owned-entry list. Every
    single-entry read, update and delete goes through :meth:`authorize` first.
    """

    def __init__(self, entries: EntryStore) -> None:
        self._entries = entries

    @staticmethod
    def can_access(principal: PrincipalRecord, entry_id: str) -> bool:
        return entry_id in principal.entry_ids

    def authorize(self, principal: PrincipalRecord, entry_id: str) -> Outcome[None]:
        """OK when owned; FORBIDDEN when the entry exists but is someone else's; NOT_FOUND otherwise."""
        if self.can_access(principal, entry_id):
            return Outcome.ok()

        if self._entries.exists(entry_id):
            logger.warning(
                "authz.denied principal_id=%s entry_id=%s reason=not_owner",
                safe_log_identifier(principal.username, prefix="pid"),
                safe_log_identifier(entry_id, prefix="eid"),
            )
            return Outcome.forbidden()
        return Outcome.not_found()
