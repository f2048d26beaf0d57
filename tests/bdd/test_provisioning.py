"""Behaviour tests for provisioning and publishing a site.

The scenarios in ``features/provisioning.feature`` drive the
:class:`~sb_sites.publishing.ProvisionPublishStateMachine` against the
in-memory site store from ``tests/conftest.py``. Poll intervals are scaled
down to milliseconds so the thirty-attempt cap completes quickly.

Usage:
    Run these behaviour tests with pytest, for example:

        pytest tests/bdd/test_provisioning.py -v
"""

from __future__ import annotations

import asyncio
import typing as typ
from pathlib import Path

import pytest
from pytest_bdd import given, parsers, scenarios, then, when

from sb_sites.config import HeroSection
from sb_sites.config.models import PublishStatus
from sb_sites.lifecycle import DraftLifecycleManager
from sb_sites.publishing import ProvisionPublishStateMachine

FEATURE_FILE = Path(__file__).resolve().parents[2] / "features" / "provisioning.feature"
scenarios(FEATURE_FILE)

ScenarioState = dict[str, typ.Any]


@pytest.fixture
def scenario_state() -> ScenarioState:
    """Return a mutable dict used to share scenario state across BDD steps."""
    return {}


def _machine(store: typ.Any, cache: typ.Any) -> ProvisionPublishStateMachine:
    manager = DraftLifecycleManager("42", store=store, cache=cache, autosave_debounce=10)
    return ProvisionPublishStateMachine(manager, apex_domain="sites.example.com", poll_interval=0.001)


@given("a site store that reports provisioning twice before finishing")
def given_slow_store(store: typ.Any, cache: typ.Any, scenario_state: ScenarioState) -> None:
    """Queue two ``provisioning`` answers followed by ``provisioned``.

    Parameters
    ----------
    store : FakeSiteStore
        In-memory store whose status answers are queued.
    cache : MemoryCache
        Local draft cache for the lifecycle manager.
    scenario_state : ScenarioState
        Receives the state machine under ``"machine"``.
    """
    store.provision_statuses = ["provisioning", "provisioning", "provisioned"]
    scenario_state["store"] = store
    scenario_state["machine"] = _machine(store, cache)


@given("a site store that never finishes provisioning")
def given_stuck_store(store: typ.Any, cache: typ.Any, scenario_state: ScenarioState) -> None:
    """Leave the store answering ``provisioning`` forever."""
    scenario_state["store"] = store
    scenario_state["machine"] = _machine(store, cache)


@given("a provisioned site with an unpublished draft")
def given_provisioned_site(store: typ.Any, cache: typ.Any, scenario_state: ScenarioState) -> None:
    """Prepare a provisioned machine whose draft differs from the published copy."""
    machine = _machine(store, cache)
    machine.status = PublishStatus.PROVISIONED
    scenario_state["store"] = store
    scenario_state["machine"] = machine


@when(parsers.parse('I provision the slug "{slug}"'))
def when_provision(scenario_state: ScenarioState, slug: str) -> None:
    """Request provisioning and wait for the poll loop to settle."""
    machine: ProvisionPublishStateMachine = scenario_state["machine"]

    async def run() -> None:
        try:
            await machine.provision(slug)
            await machine.wait_for_provisioning()
        finally:
            await machine.close()
            await machine.lifecycle.close()

    asyncio.run(run())


@when("I publish the site")
def when_publish(scenario_state: ScenarioState) -> None:
    """Edit the draft, then publish it."""
    machine: ProvisionPublishStateMachine = scenario_state["machine"]
    manager = machine.lifecycle

    async def run() -> bool:
        try:
            manager.set_slug("my-studio")
            manager.add_section(HeroSection(id="h1", title="Opening soon"))
            return await machine.publish()
        finally:
            await manager.close()

    scenario_state["published"] = asyncio.run(run())


@then(parsers.parse('the site status is "{status}"'))
def then_status(scenario_state: ScenarioState, status: str) -> None:
    """Verify the machine's current status."""
    machine: ProvisionPublishStateMachine = scenario_state["machine"]
    assert machine.status == PublishStatus(status), (
        f"expected status {status!r}, got {machine.status!r} ({machine.last_error})"
    )


@then(parsers.parse("the store was polled {count:d} times"))
def then_polled(scenario_state: ScenarioState, count: int) -> None:
    """Verify how many provision status checks were made."""
    polls = scenario_state["store"].called("get_provision_status")
    assert len(polls) == count, f"expected {count} status polls, got {len(polls)}"


@then("the slug is read-only")
def then_slug_locked(scenario_state: ScenarioState) -> None:
    """Verify a provisioned slug can no longer be renamed."""
    assert scenario_state["machine"].slug_read_only


@then("no provision request was sent")
def then_no_request(scenario_state: ScenarioState) -> None:
    """Verify the invalid slug was rejected locally."""
    assert scenario_state["store"].called("provision") == []


@then("the draft has no unpublished changes")
def then_no_unpublished_changes(scenario_state: ScenarioState) -> None:
    """Verify the published copy now matches the draft."""
    machine: ProvisionPublishStateMachine = scenario_state["machine"]
    assert scenario_state["published"]
    assert machine.run_id == "run-1"
    assert not machine.lifecycle.state.has_unpublished_changes
