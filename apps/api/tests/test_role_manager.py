from __future__ import annotations

from dataclasses import replace
import unittest

from journal_api.core.security import CredentialHasher
from journal_api.domain.roles import DEFAULT_ROLES, Role, normalize_roles, sorted_roles
from journal_api.repositories.memory import InMemoryDocumentStore, WriteConflictError
from journal_api.repositories.principals import PrincipalStore
from journal_api.services.roles import PrincipalSeed, RoleManager, SeedRequiredError, bootstrap_admin


class _ConflictOncePrincipalStore(PrincipalStore):
    def __init__(self, store: InMemoryDocumentStore) -> None:
        super().__init__(store)
        self.save_calls = 0

    def save(self, record):  # type: ignore[override]
        self.save_calls += 1
        if self.save_calls == 1:
            raise WriteConflictError(record.id, record.version, record.version + 1)
        return super().save(record)


class RoleManagerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.store = InMemoryDocumentStore()
        self.principals = PrincipalStore(self.store)
        self.hasher = CredentialHasher(rounds=4)
        self.manager = RoleManager(self.principals)
        self.seed = PrincipalSeed(credential_hash=self.hasher.hash("pw"))

    def test_missing_principal_is_created_with_user_and_granted_role(self) -> None:
        record = self.manager.grant_role(username="boss", role=Role.ADMIN, seed=self.seed)

        self.assertEqual(record.roles, frozenset({Role.USER, Role.ADMIN}))
        self.assertEqual(record.entry_ids, [])
        self.assertTrue(self.hasher.verify("pw", record.credential_hash))
        self.assertEqual(self.store.principal_write_count, 1)

    def test_existing_principal_gains_role_and_keeps_entries(self) -> None:
        existing = self.principals.create(username="ram", credential_hash=self.hasher.hash("pw"), roles=DEFAULT_ROLES)
        self.principals.save(replace(existing, entry_ids=["e-1"]))

        record = self.manager.grant_role(username="ram", role=Role.ADMIN, seed=PrincipalSeed())

        self.assertEqual(record.roles, frozenset({Role.USER, Role.ADMIN}))
        self.assertEqual(record.entry_ids, ["e-1"])
        self.assertTrue(self.hasher.verify("pw", record.credential_hash))

    def test_missing_principal_without_credential_is_rejected(self) -> None:
        with self.assertRaises(SeedRequiredError):
            self.manager.grant_role(username="boss", role=Role.ADMIN, seed=PrincipalSeed())

        self.assertIsNone(self.principals.find_by_username("boss"))
        self.assertEqual(self.store.principal_write_count, 0)

    def test_granting_held_role_twice_writes_once(self) -> None:
        self.principals.create(username="ram", credential_hash=self.hasher.hash("pw"), roles=DEFAULT_ROLES)
        writes_before = self.store.principal_write_count

        first = self.manager.grant_role(username="ram", role=Role.ADMIN, seed=self.seed)
        second = self.manager.grant_role(username="ram", role=Role.ADMIN, seed=self.seed)

        self.assertEqual(self.store.principal_write_count, writes_before + 1)
        self.assertEqual(first, second)

    def test_write_conflict_is_retried_once(self) -> None:
        principals = _ConflictOncePrincipalStore(self.store)
        principals.create(username="ram", credential_hash=self.hasher.hash("pw"), roles=DEFAULT_ROLES)
        manager = RoleManager(principals)

        record = manager.grant_role(username="ram", role=Role.ADMIN, seed=self.seed)

        self.assertIn(Role.ADMIN, record.roles)
        self.assertEqual(principals.save_calls, 2)

    def test_bootstrap_admin_only_creates_once(self) -> None:
        self.assertTrue(bootstrap_admin(self.principals, self.hasher, username="root", password="pw"))
        self.assertFalse(bootstrap_admin(self.principals, self.hasher, username="root", password="other"))

        root = self.principals.find_by_username("root")
        self.assertEqual(root.roles, frozenset({Role.USER, Role.ADMIN}))
        self.assertTrue(self.hasher.verify("pw", root.credential_hash))


class RoleHelperTests(unittest.TestCase):
    def test_normalize_roles_always_includes_user(self) -> None:
        self.assertEqual(normalize_roles([]), frozenset({Role.USER}))
        self.assertEqual(normalize_roles(["admin"]), frozenset({Role.USER, Role.ADMIN}))

    def test_normalize_roles_rejects_unknown_tag(self) -> None:
        with self.assertRaises(ValueError):
            normalize_roles(["SUPERUSER"])

    def test_sorted_roles_is_stable(self) -> None:
        self.assertEqual(sorted_roles({Role.USER, Role.ADMIN}), [Role.ADMIN, Role.USER])


if __name__ == "__main__":
    unittest.main()
