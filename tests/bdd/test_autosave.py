"""Behaviour tests for the draft autosave saga and version restore.

These scenarios back ``features/autosave.feature``. Each step drives a
:class:`~sb_sites.lifecycle.DraftLifecycleManager` inside ``asyncio.run`` with
an in-memory cache and store, so no network or filesystem access happens.
"""

from __future__ import annotations

import asyncio
import typing as typ
from pathlib import Path

import pytest
from pytest_bdd import given, scenarios, then, when

from sb_sites.config import HeroSection, dump_site_config, parse_site_config
from sb_sites.lifecycle import DraftLifecycleManager

FEATURE_FILE = Path(__file__).resolve().parents[2] / "features" / "autosave.feature"
scenarios(FEATURE_FILE)

ScenarioState = dict[str, typ.Any]


@pytest.fixture
def scenario_state() -> ScenarioState:
    """Return a mutable dict used to share scenario state across BDD steps."""
    return {}


def _manager(store: typ.Any, cache: typ.Any, debounce: float = 0.01) -> DraftLifecycleManager:
    return DraftLifecycleManager("42", store=store, cache=cache, autosave_debounce=debounce)


@given("a draft editor whose remote store rejects saves")
def given_failing_store(store: typ.Any, cache: typ.Any, scenario_state: ScenarioState) -> None:
    """Create a manager whose remote ``save_draft`` always fails.

    Parameters
    ----------
    store : FakeSiteStore
        In-memory store configured to fail draft saves.
    cache : MemoryCache
        Local cache inspected by later steps.
    scenario_state : ScenarioState
        Receives ``manager`` and ``cache``.
    """
    store.failing.add("save_draft")
    scenario_state["manager"] = _manager(store, cache)
    scenario_state["cache"] = cache


@given("a local draft cached for the business")
def given_local_draft(
    store: typ.Any, cache: typ.Any, site_payload: dict[str, typ.Any], scenario_state: ScenarioState
) -> None:
    """Cache the sample site locally while the store holds a different draft."""
    cache.set("sb:42", {"slug": "local", "draft": dump_site_config(parse_site_config(site_payload))})
    store.record = {
        "slug": "remote",
        "draft": dict(site_payload, sections=[{"id": "remote-hero", "type": "hero"}]),
        "published": None,
    }
    scenario_state["manager"] = _manager(store, cache)


@given("a draft editor previewing a saved version")
def given_previewing_editor(
    store: typ.Any, cache: typ.Any, site_payload: dict[str, typ.Any], scenario_state: ScenarioState
) -> None:
    """Store one saved version and remember the store for later checks."""
    store.versions = {"v1": {"note": "launch", "data": site_payload}}
    scenario_state["store"] = store
    scenario_state["cache"] = cache
    # Long enough that the stale edit cannot autosave before the restore lands.
    scenario_state["manager"] = _manager(store, cache, debounce=0.2)


@when("I add a hero section and wait for the autosave")
def when_add_hero(scenario_state: ScenarioState) -> None:
    """Add a section and let the debounce elapse."""
    manager: DraftLifecycleManager = scenario_state["manager"]

    async def run() -> None:
        manager.add_section(HeroSection(id="h1", title="Hello"))
        await manager.wait_for_autosave()

    asyncio.run(run())


@when("the editor hydrates")
def when_hydrate(scenario_state: ScenarioState) -> None:
    """Hydrate from the local cache and reconcile with the store."""
    asyncio.run(scenario_state["manager"].hydrate())


@when("I restore the previewed version")
def when_restore(scenario_state: ScenarioState) -> None:
    """Make a stale edit, preview the version, restore it, then edit again."""
    manager: DraftLifecycleManager = scenario_state["manager"]
    store = scenario_state["store"]

    async def run() -> None:
        manager.add_section(HeroSection(id="stale"))
        await manager.start_preview("v1")
        scenario_state["restored"] = await manager.restore_version()
        await manager.wait_for_autosave()
        scenario_state["saves_after_restore"] = len(store.called("save_draft"))
        manager.set_slug("after-restore")
        await manager.wait_for_autosave()
        await manager.close()

    asyncio.run(run())


@then("the local cache holds the hero section")
def then_local_copy(scenario_state: ScenarioState) -> None:
    """Verify the local write happened before the failed remote write."""
    record = scenario_state["cache"].get("sb:42")
    assert record is not None, "expected a cached draft record"
    assert record["draft"]["sections"][0]["id"] == "h1"


@then("the remote error is recorded")
def then_remote_error(scenario_state: ScenarioState) -> None:
    """Verify the failure is surfaced on the lifecycle state."""
    assert scenario_state["manager"].state.last_remote_error == "save_draft failed"


@then("the draft comes from the local cache")
def then_local_wins(scenario_state: ScenarioState) -> None:
    """Verify hydration kept the cached draft and slug."""
    state = scenario_state["manager"].state
    assert state.slug == "local"
    assert state.draft is not None
    assert [section.id for section in state.draft.sections] == ["hero-1", "links-1", "content-1"]


@then("no autosave reaches the remote store")
def then_no_autosave(scenario_state: ScenarioState) -> None:
    """Verify the autosave following the restore was skipped."""
    assert scenario_state["restored"]
    assert scenario_state["saves_after_restore"] == 0


@then("the next edit is autosaved")
def then_next_edit_saved(scenario_state: ScenarioState) -> None:
    """Verify the skip applied to one cycle only."""
    saves = scenario_state["store"].called("save_draft")
    assert len(saves) == 1
    assert saves[0][1]["slug"] == "after-restore"
