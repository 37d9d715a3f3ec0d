"""Tests for app_transfer/scope.py – workspace resolution."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from app_transfer.errors import ScopeResolutionError
from app_transfer.scope import normalise_workspace, resolve_scope


class TestNormaliseWorkspace:
    def test_strips_and_upper_cases(self) -> None:
        assert normalise_workspace("  sales ") == "SALES"


class TestResolveScope:
    def test_explicit_workspace_wins(self) -> None:
        store = MagicMock()
        assert resolve_scope(store, "hr", "alice") == "HR"
        store.assigned_workspaces.assert_not_called()

    def test_default_is_first_assigned(self, store) -> None:
        assert resolve_scope(store, None, "alice") == "SALES"

    def test_blank_workspace_counts_as_absent(self, store) -> None:
        assert resolve_scope(store, "  ", "alice") == "SALES"

    def test_no_assignments_raises(self, store) -> None:
        with pytest.raises(ScopeResolutionError, match="not assigned"):
            resolve_scope(store, None, "mallory")

    def test_no_caller_raises(self, store) -> None:
        with pytest.raises(ScopeResolutionError, match="no caller"):
            resolve_scope(store, None, None)
