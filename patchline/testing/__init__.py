"""Verification helpers for patch lifecycles. Requires pytest."""

from patchline.testing.harness import (
    LifecycleWorkspace,
    Scenario,
    ScenarioContext,
    ScenarioReport,
    expect_renamed,
    expect_restored,
    run_scenario,
)
from patchline.testing.permissions import PermissionRevocation, revoke_permissions

__all__ = [
    "LifecycleWorkspace",
    "PermissionRevocation",
    "Scenario",
    "ScenarioContext",
    "ScenarioReport",
    "expect_renamed",
    "expect_restored",
    "revoke_permissions",
    "run_scenario",
]
