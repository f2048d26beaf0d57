"""Tests for the ``sb`` command functions."""

from __future__ import annotations

import json
import logging
import typing as typ

import msgspec
import pytest

from sb_sites import cli
from sb_sites.lifecycle import DraftLifecycleManager
from sb_sites.publishing import ProvisionPublishStateMachine
from sb_sites.remote import SiteStoreError

if typ.TYPE_CHECKING:
    from pathlib import Path

    from pytest_mock import MockerFixture


@pytest.fixture
def config_file(tmp_path: Path, site_payload: dict[str, typ.Any]) -> Path:
    path = tmp_path / "site.json"
    path.write_text(json.dumps(site_payload), encoding="utf-8")
    return path


@pytest.fixture
def no_settings(tmp_path: Path) -> Path:
    return tmp_path / "missing.toml"


@pytest.fixture
def open_site(mocker: MockerFixture, store: typ.Any, cache: typ.Any) -> typ.Any:
    """Route the remote commands at the in-memory store."""
    manager = DraftLifecycleManager("42", store=store, cache=cache, autosave_debounce=10)
    machine = ProvisionPublishStateMachine(
        manager, apex_domain="sites.example.com", poll_interval=0.001, max_poll_attempts=3
    )
    client = mocker.Mock()
    mocker.patch.object(cli, "_open_site", return_value=(client, manager, machine))
    return client


def test_render_prints_html(config_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
    cli.render(config_file, title="Studio")
    out = capsys.readouterr().out
    assert out.startswith("<!DOCTYPE html>")
    assert "<title>Studio</title>" in out
    assert 'data-sb-section-id="hero-1"' in out
    assert 'data-sb-section-id="links-1"' not in out


def test_render_links_audience_to_file(
    config_file: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    output = tmp_path / "dist" / "links.html"
    cli.render(config_file, output=output, links=True)

    assert capsys.readouterr().out.startswith("wrote ")
    html = output.read_text(encoding="utf-8")
    assert 'data-sb-section-id="links-1"' in html
    assert 'data-sb-section-id="hero-1"' not in html


def test_render_rejects_conflicting_audiences(config_file: Path) -> None:
    with pytest.raises(ValueError, match="at most one"):
        cli.render(config_file, links=True, sections_only=True)


def test_vars_prints_prefixed_variables(config_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
    cli.show_vars(config_file)
    payload = msgspec.json.decode(capsys.readouterr().out)

    assert [entry["id"] for entry in payload["sections"]] == ["links-1", "hero-1", "content-1"]
    assert all(key.startswith("--sb-") for key in payload["theme"])
    for entry in payload["sections"]:
        assert all(key.startswith("--sb-") for key in entry["variables"])
    hero = payload["sections"][1]
    assert hero["variables"]["--sb-hero-bg-image"] == 'url("https://img.example.com/bg.jpg")'


def test_sections_lists_addable_types(capsys: pytest.CaptureFixture[str]) -> None:
    cli.sections()
    listed = capsys.readouterr().out.split()
    assert "hero" in listed
    assert "links_page" in listed
    assert "special_offers" not in listed


def test_remote_commands_require_base_url(no_settings: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SB_API_URL", raising=False)
    with pytest.raises(SiteStoreError, match="No remote store configured"):
        cli.publish("42", config_path=no_settings)


def test_provision_reports_ready_site(
    open_site: typ.Any, store: typ.Any, no_settings: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    store.provision_statuses = ["provisioned"]

    cli.provision("42", slug="my-studio", config_path=no_settings)

    assert capsys.readouterr().out.strip() == "42: provisioned"
    assert store.called("provision")[0][1]["slug"] == "my-studio"
    open_site.close.assert_called_once_with()


def test_provision_skips_already_provisioned_site(
    open_site: typ.Any, store: typ.Any, no_settings: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    store.site_settings = {"site_slug": "studio", "provision_status": "provisioned"}

    cli.provision("42", config_path=no_settings)

    assert capsys.readouterr().out.strip() == "42: provisioned"
    assert store.called("provision") == []


def test_provision_failure_raises(open_site: typ.Any, store: typ.Any, no_settings: Path) -> None:
    with pytest.raises(SiteStoreError, match="did not finish after 3 checks"):
        cli.provision("42", slug="my-studio", config_path=no_settings)


def test_publish_goes_live(
    open_site: typ.Any,
    store: typ.Any,
    site_payload: dict[str, typ.Any],
    no_settings: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    store.record = {"slug": "studio", "draft": site_payload, "published": None}
    store.site_settings = {"site_slug": "studio", "provision_status": "provisioned"}

    cli.publish("42", config_path=no_settings)

    assert capsys.readouterr().out.strip() == "42: live (run run-1)"
    assert store.called("publish")[0][1]["slug"] == "studio"


def test_publish_without_changes(
    open_site: typ.Any,
    store: typ.Any,
    site_payload: dict[str, typ.Any],
    no_settings: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    store.record = {"slug": "studio", "draft": site_payload, "published": site_payload}
    store.site_settings = {"site_slug": "studio", "provision_status": "provisioned"}

    cli.publish("42", config_path=no_settings)

    assert capsys.readouterr().out.strip() == "42: no unpublished changes"
    assert store.called("publish") == []


def test_publish_error_raises(
    open_site: typ.Any, store: typ.Any, site_payload: dict[str, typ.Any], no_settings: Path
) -> None:
    store.record = {"slug": "studio", "draft": site_payload, "published": None}
    store.site_settings = {"site_slug": "studio", "provision_status": "provisioned"}
    store.failing.add("publish")

    with pytest.raises(SiteStoreError, match="publish failed"):
        cli.publish("42", config_path=no_settings)


def test_status_prints_slug_and_state(
    open_site: typ.Any, store: typ.Any, no_settings: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    store.site_settings = {"site_slug": "studio", "provision_status": "provisioned"}
    cli.status("42", config_path=no_settings)
    assert capsys.readouterr().out.strip() == "studio: provisioned"


def test_status_of_publish_task(
    open_site: typ.Any, no_settings: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    cli.status("42", task_id="task-3", config_path=no_settings)
    assert msgspec.json.decode(capsys.readouterr().out) == {"task_id": "task-3", "state": "SUCCESS"}


def test_versions_lists_tab_separated_rows(
    open_site: typ.Any, store: typ.Any, no_settings: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    store.versions = {"v1": {"note": "launch", "data": {}}}
    cli.versions("42", config_path=no_settings)
    assert capsys.readouterr().out.splitlines() == ["v1\t-\t-\t0\tlaunch"]


def test_restore_success_and_failure(
    open_site: typ.Any,
    store: typ.Any,
    site_payload: dict[str, typ.Any],
    no_settings: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    store.versions = {"v1": {"note": "launch", "data": site_payload}}
    cli.restore("42", "v1", config_path=no_settings)
    assert capsys.readouterr().out.strip() == "restored v1"
    assert store.called("revert_version") == [("42", "v1")]

    store.failing.add("revert_version")
    with pytest.raises(SiteStoreError, match="Could not restore version v1"):
        cli.restore("42", "v1", config_path=no_settings)


def test_launcher_configures_logging_then_dispatches(mocker: MockerFixture) -> None:
    configure = mocker.patch.object(cli, "configure_logging")
    dispatch = mocker.patch.object(cli, "app")

    cli.launcher("sections", verbose=True, json_logs=True)

    configure.assert_called_once_with(logging.DEBUG, json_output=True)
    dispatch.assert_called_once_with(("sections",))
