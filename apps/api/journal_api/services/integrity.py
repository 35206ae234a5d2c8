"""Referential-integrity scan over principals and entries."""

from __future__ import annotations

from collections import defaultdict
import logging

from journal_api.core.logging_safety import safe_log_identifier, safe_log_identifiers
from journal_api.repositories.entries import EntryStore
from journal_api.repositories.principals import PrincipalStore
from journal_api.schemas.integrity import IntegrityReport

logger = logging.getLogger(__name__)


class IntegrityScanner:
    """Reports orphan entries, dangling references and shared entries; never repairs."""

    def __init__(self, principals: PrincipalStore, entries: EntryStore) -> None:
        self._principals = principals
        self._entries = entries

    def scan(self) -> IntegrityReport:
        principals = self._principals.list_all()
        entry_ids = {entry.id for entry in self._entries.list_all()}

        owners_by_entry: dict[str, list[str]] = defaultdict(list)
        dangling: dict[str, list[str]] = {}
        for principal in principals:
            missing = [entry_id for entry_id in principal.entry_ids if entry_id not in entry_ids]
            if missing:
                dangling[principal.username] = missing
            for entry_id in principal.entry_ids:
                owners_by_entry[entry_id].append(principal.username)

        orphans = sorted(entry_id for entry_id in entry_ids if entry_id not in owners_by_entry)
        shared = sorted(entry_id for entry_id, owners in owners_by_entry.items() if len(owners) > 1)

        report = IntegrityReport(
            principal_count=len(principals),
            entry_count=len(entry_ids),
            orphan_entry_ids=orphans,
            dangling_references=dangling,
            shared_entry_ids=shared,
        )
        if report.consistent:
            logger.info(
                "integrity.scan_passed principal_count=%s entry_count=%s",
                report.principal_count,
                report.entry_count,
            )
            return report

        for username, missing in dangling.items():
            logger.error(
                "integrity.dangling_references principal_id=%s entry_ids=%s",
                safe_log_identifier(username, prefix="pid"),
                safe_log_identifiers(missing, prefix="eid"),
            )
        if orphans:
            logger.error("integrity.orphan_entries entry_ids=%s", safe_log_identifiers(orphans, prefix="eid"))
        if shared:
            logger.error("integrity.shared_entries entry_ids=%s", safe_log_identifiers(shared, prefix="eid"))
        return report
