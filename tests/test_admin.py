"""Tests for administrative configuration changes.

Covers level CRUD with its consistency checks (duplicates, levels still in
use, missing ids), group assignments and group sets.
"""
from __future__ import annotations

import logging

import pytest

from field_permissions.admin import VisibilityAdmin
from field_permissions.catalog.loader import load_snapshot
from field_permissions.core.config import FieldPermissionsConfig
from field_permissions.core.errors import (
    AdministrationError,
    DuplicateLevel,
    InvalidGroupDefinition,
    InvalidGroupSet,
    InvalidLevelDefinition,
    LevelInUse,
    LevelNotFound,
    UnknownLevelReference,
)
from field_permissions.core.interfaces import (
    InMemoryAnnotationSource,
    InMemoryConfigurationStore,
)
from field_permissions.core.types import GroupLevelAssignment, GroupSet, UserIdentity
from field_permissions.engine import VisibilityEngine

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def store() -> InMemoryConfigurationStore:
    # Ids: public=1, internal=2, sensitive=3.
    return InMemoryConfigurationStore.from_config(FieldPermissionsConfig())


@pytest.fixture
def admin(store: InMemoryConfigurationStore) -> VisibilityAdmin:
    return VisibilityAdmin(store)


async def _assignments(store: InMemoryConfigurationStore) -> dict[str, str]:
    return {a.group: a.level_name for a in await store.list_group_assignments()}


# ---------------------------------------------------------------------------
# Levels
# ---------------------------------------------------------------------------

class TestLevels:

    @pytest.mark.asyncio
    async def test_list_levels_by_rank(self, admin: VisibilityAdmin) -> None:
        levels = await admin.list_levels()
        assert [(lvl.id, lvl.name, lvl.rank) for lvl in levels] == [
            (1, "public", 0), (2, "internal", 10), (3, "sensitive", 20),
        ]

    @pytest.mark.asyncio
    async def test_add_level(
        self, admin: VisibilityAdmin, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.INFO, logger="field_permissions.admin"):
            level = await admin.add_level(" Restricted ", 15, "Visibility:Restricted Data")
        assert level.id == 4
        assert level.name == "Restricted"
        assert level.reference == "Visibility:Restricted Data"
        assert [lvl.name for lvl in await admin.list_levels()] == [
            "public", "internal", "Restricted", "sensitive",
        ]
        assert "Added visibility level: Restricted (15)" in caplog.text

    @pytest.mark.asyncio
    async def test_add_duplicate_level(self, admin: VisibilityAdmin) -> None:
        with pytest.raises(DuplicateLevel) as exc_info:
            await admin.add_level("Visibility:Internal", 11)
        assert exc_info.value.details["level_id"] == 2
        assert isinstance(exc_info.value, AdministrationError)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("name", "rank"), [("", 5), ("  ", 5), ("secret", -1)])
    async def test_add_invalid_level(
        self, admin: VisibilityAdmin, name: str, rank: int
    ) -> None:
        with pytest.raises(InvalidLevelDefinition):
            await admin.add_level(name, rank)

    @pytest.mark.asyncio
    async def test_update_rank_of_assigned_level(self, admin: VisibilityAdmin) -> None:
        level = await admin.update_level(2, "Internal", 12)
        assert (level.id, level.name, level.rank) == (2, "Internal", 12)

    @pytest.mark.asyncio
    async def test_rename_unassigned_level(self, admin: VisibilityAdmin) -> None:
        added = await admin.add_level("restricted", 15)
        renamed = await admin.update_level(added.id, "confidential", 15)
        assert renamed.name == "confidential"

    @pytest.mark.asyncio
    async def test_rename_assigned_level_refused(self, admin: VisibilityAdmin) -> None:
        with pytest.raises(LevelInUse) as exc_info:
            await admin.update_level(2, "staff", 10)
        assert exc_info.value.details["groups"] == ["lab_member"]

    @pytest.mark.asyncio
    async def test_rename_to_existing_name_refused(self, admin: VisibilityAdmin) -> None:
        added = await admin.add_level("restricted", 15)
        with pytest.raises(DuplicateLevel):
            await admin.update_level(added.id, "sensitive", 15)

    @pytest.mark.asyncio
    async def test_update_missing_level(self, admin: VisibilityAdmin) -> None:
        with pytest.raises(LevelNotFound) as exc_info:
            await admin.update_level(99, "ghost", 1)
        assert exc_info.value.code == "FP-E300"

    @pytest.mark.asyncio
    async def test_delete_unassigned_level(self, admin: VisibilityAdmin) -> None:
        added = await admin.add_level("restricted", 15)
        await admin.delete_level(added.id)
        assert all(lvl.id != added.id for lvl in await admin.list_levels())

    @pytest.mark.asyncio
    async def test_delete_assigned_level_refused(self, admin: VisibilityAdmin) -> None:
        with pytest.raises(LevelInUse) as exc_info:
            await admin.delete_level(1)
        assert exc_info.value.details["groups"] == ["*", "user"]
        assert exc_info.value.to_dict()["error"]["code"] == "FP-E301"

    @pytest.mark.asyncio
    async def test_delete_after_unassigning(self, admin: VisibilityAdmin) -> None:
        await admin.remove_group_level("pi")
        await admin.delete_level(3)
        assert [lvl.name for lvl in await admin.list_levels()] == ["public", "internal"]

    @pytest.mark.asyncio
    async def test_delete_missing_level(self, admin: VisibilityAdmin) -> None:
        with pytest.raises(LevelNotFound):
            await admin.delete_level(99)


# ---------------------------------------------------------------------------
# Group assignments
# ---------------------------------------------------------------------------

class TestGroupAssignments:

    @pytest.mark.asyncio
    async def test_set_group_level_stores_canonical_level(
        self, admin: VisibilityAdmin, store: InMemoryConfigurationStore
    ) -> None:
        await admin.set_group_level(" HR ", "Visibility:Sensitive")
        assert (await _assignments(store))["HR"] == "sensitive"

    @pytest.mark.asyncio
    async def test_replace_assignment(
        self, admin: VisibilityAdmin, store: InMemoryConfigurationStore
    ) -> None:
        await admin.set_group_level("lab_member", "sensitive")
        assert (await _assignments(store))["lab_member"] == "sensitive"

    @pytest.mark.asyncio
    async def test_reassign_under_other_spelling(
        self, admin: VisibilityAdmin, store: InMemoryConfigurationStore
    ) -> None:
        await admin.set_group_level("Group:Lab Member", "sensitive")
        assignments = await _assignments(store)
        assert "lab_member" not in assignments
        assert assignments["Group:Lab Member"] == "sensitive"

        snapshot = await load_snapshot(store)
        assert snapshot.groups.get_group_max_level_name("lab_member") == "sensitive"

    @pytest.mark.asyncio
    async def test_reassigned_group_still_opens_sessions(
        self, admin: VisibilityAdmin, store: InMemoryConfigurationStore
    ) -> None:
        await admin.set_group_level("Lab Member", "sensitive")
        engine = VisibilityEngine(store, InMemoryAnnotationSource())
        session = await engine.begin_session()
        member = UserIdentity(user_id=1, name="Ada", groups=["lab_member"])
        assert session.may_view_level(member, "sensitive") is True

    @pytest.mark.asyncio
    async def test_unknown_level_refused(self, admin: VisibilityAdmin) -> None:
        with pytest.raises(UnknownLevelReference) as exc_info:
            await admin.set_group_level("hr", "secret")
        assert exc_info.value.details == {"group": "hr", "level": "secret"}

    @pytest.mark.asyncio
    async def test_blank_group_refused(self, admin: VisibilityAdmin) -> None:
        with pytest.raises(InvalidGroupDefinition):
            await admin.set_group_level("  ", "public")

    @pytest.mark.asyncio
    async def test_remove_every_spelling(
        self, admin: VisibilityAdmin, store: InMemoryConfigurationStore
    ) -> None:
        await store.set_group_level("Lab Member", "internal")
        await admin.remove_group_level("Group:Lab Member")
        remaining = await store.list_group_assignments()
        assert GroupLevelAssignment(group="lab_member", level_name="internal") not in remaining
        assert all(a.group != "Lab Member" for a in remaining)

    @pytest.mark.asyncio
    async def test_remove_missing_group_is_noop(
        self, admin: VisibilityAdmin, store: InMemoryConfigurationStore
    ) -> None:
        before = await store.list_group_assignments()
        await admin.remove_group_level("nobody")
        assert await store.list_group_assignments() == before

    @pytest.mark.asyncio
    async def test_changes_produce_valid_snapshot(
        self, admin: VisibilityAdmin, store: InMemoryConfigurationStore
    ) -> None:
        await admin.add_level("restricted", 15)
        await admin.set_group_level("hr", "restricted")
        snapshot = await load_snapshot(store)
        assert snapshot.groups.get_group_max_level_name("hr") == "restricted"


# ---------------------------------------------------------------------------
# Group sets
# ---------------------------------------------------------------------------

class TestGroupSets:

    @pytest.mark.asyncio
    async def test_set_and_remove(
        self, admin: VisibilityAdmin, store: InMemoryConfigurationStore
    ) -> None:
        await admin.set_group_set("staff", [" editors ", "reviewers"])
        assert GroupSet(name="staff", members=["editors", "reviewers"]) in (
            await store.list_group_sets()
        )
        await admin.remove_group_set("staff")
        assert [s.name for s in await store.list_group_sets()] == ["all_admins"]

    @pytest.mark.asyncio
    async def test_replace_set(
        self, admin: VisibilityAdmin, store: InMemoryConfigurationStore
    ) -> None:
        await admin.set_group_set("all_admins", ["sysop"])
        assert await store.list_group_sets() == [
            GroupSet(name="all_admins", members=["sysop"]),
        ]

    @pytest.mark.asyncio
    async def test_replace_set_under_other_spelling(
        self, admin: VisibilityAdmin, store: InMemoryConfigurationStore
    ) -> None:
        await admin.set_group_set("All Admins", ["bureaucrat"])
        assert await store.list_group_sets() == [
            GroupSet(name="All Admins", members=["bureaucrat"]),
        ]
        snapshot = await load_snapshot(store)
        assert snapshot.groups.get_group_set("all_admins") == ["bureaucrat"]

    @pytest.mark.asyncio
    async def test_remove_set_under_other_spelling(
        self, admin: VisibilityAdmin, store: InMemoryConfigurationStore
    ) -> None:
        await admin.remove_group_set("ALL ADMINS")
        assert await store.list_group_sets() == []

    @pytest.mark.asyncio
    async def test_blank_member_refused(self, admin: VisibilityAdmin) -> None:
        with pytest.raises(InvalidGroupSet):
            await admin.set_group_set("staff", ["editors", " "])
