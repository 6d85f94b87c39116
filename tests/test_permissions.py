"""Tests for permission enums, capabilities, and the action mapping."""

from __future__ import annotations

import pytest

from pathgate.permissions import (
    ACTION_CAPABILITIES,
    Action,
    Capability,
    RulePermission,
    capabilities_for,
)


class TestRulePermission:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("rw", RulePermission.READ_WRITE),
            ("ro", RulePermission.READ_ONLY),
            ("hidden", RulePermission.HIDDEN),
            ("bogus", RulePermission.READ_WRITE),
            (None, RulePermission.READ_WRITE),
        ],
    )
    def test_coerce(self, raw, expected):
        assert RulePermission.coerce(raw) is expected


class TestActions:
    def test_every_action_maps_to_one_capability(self):
        assert set(ACTION_CAPABILITIES) == set(Action)
        for capability in ACTION_CAPABILITIES.values():
            assert capability in Capability.__members__.values()
            assert capability is not Capability.NONE
            assert capability is not Capability.MUTATE

    def test_rename_needs_write(self):
        assert ACTION_CAPABILITIES[Action.RENAME] is Capability.WRITE

    def test_list_needs_read(self):
        assert ACTION_CAPABILITIES[Action.LIST] is Capability.READ

    def test_parse(self):
        assert Action.parse("createFolder") is Action.CREATE_FOLDER
        assert Action.parse(Action.READ) is Action.READ
        assert Action.parse("chmod") is None


class TestCapabilitiesFor:
    def test_read_write_with_share(self):
        caps = capabilities_for(read_only=False, can_share=True)
        for flag in (
            Capability.READ,
            Capability.WRITE,
            Capability.DELETE,
            Capability.UPLOAD,
            Capability.CREATE_FOLDER,
            Capability.SHARE,
            Capability.DOWNLOAD,
        ):
            assert flag in caps

    def test_read_only_drops_mutation(self):
        caps = capabilities_for(read_only=True, can_share=True)
        assert Capability.READ in caps
        assert Capability.DOWNLOAD in caps
        assert Capability.SHARE in caps
        assert not caps & Capability.MUTATE

    def test_without_share(self):
        caps = capabilities_for(read_only=False, can_share=False)
        assert Capability.SHARE not in caps
        assert Capability.WRITE in caps
