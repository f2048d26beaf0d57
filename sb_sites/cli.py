"""Cyclopts CLI entrypoint for rendering, provisioning and publishing sites.

The ``sb`` console script renders a site configuration file to HTML or to its
CSS custom properties, and drives the remote draft lifecycle for a business:
provisioning a subdomain, publishing the draft, and listing or restoring
versions. Remote commands read connection details from the operator settings
file (see :mod:`sb_sites.settings`).

Examples
--------
Render a configuration to a standalone page:

>>> from sb_sites.cli import app
>>> app.meta(["render", "site.yaml", "--output", "dist/index.html"])  # doctest: +SKIP

Provision and publish a business's site:

>>> app.meta(["provision", "42", "--slug", "my-studio"])  # doctest: +SKIP
>>> app.meta(["publish", "42"])  # doctest: +SKIP
"""

from __future__ import annotations

import asyncio
import json
import logging
import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter

from .cache import FileCache
from .config import load_site_config
from .config.models import PublishStatus
from .lifecycle import DraftLifecycleManager
from .logging_config import configure_logging
from .page import SitePageBuilder
from .pipeline import Audience, RenderContext, render_site
from .publishing import ProvisionPublishStateMachine
from .registry import addable_types
from .remote import SiteStoreClient, SiteStoreError
from .settings import DEFAULT_CONFIG_PATH, Settings, load_settings

app = App(name="sb", config=cyclopts.config.Env("SB_", command=False))  # type: ignore[unknown-argument]

SettingsPath = typ.Annotated[
    Path,
    Parameter(help="Operator settings file (TOML)", env_var="SB_CONFIG_FILE"),
]


def _format_path(path: Path) -> str:
    """Return a cwd-relative path when possible, otherwise the absolute path."""
    if path.is_absolute():
        try:
            return str(path.relative_to(Path.cwd()))
        except ValueError:  # pragma: no cover - fallback for different roots
            return str(path)
    return str(path)


def _render_context(*, links: bool, sections_only: bool, selected_index: int | None, preview: bool) -> RenderContext:
    if links and sections_only:
        msg = "Choose at most one of --links and --sections-only."
        raise ValueError(msg)
    audience = Audience.ALL
    if links:
        audience = Audience.LINKS
    elif sections_only:
        audience = Audience.SECTIONS
    return RenderContext(selected_index=selected_index, is_preview=preview, audience=audience)


@app.command(help="Render a site configuration file to HTML.")
def render(
    config: typ.Annotated[Path, Parameter(help="Site configuration (YAML or JSON)")],
    *,
    output: typ.Annotated[
        Path | None, Parameter(help="Write the page here instead of stdout")
    ] = None,
    links: typ.Annotated[bool, Parameter(help="Render only the link list page")] = False,
    sections_only: typ.Annotated[
        bool, Parameter(help="Render the published sections without the link list")
    ] = False,
    selected_index: typ.Annotated[
        int | None, Parameter(help="Section selected in the editor")
    ] = None,
    preview: typ.Annotated[bool, Parameter(help="Render as the standalone preview")] = False,
    title: typ.Annotated[str | None, Parameter(help="Document title")] = None,
) -> None:
    """Render ``config`` through the pipeline and the page template.

    Parameters
    ----------
    config : Path
        YAML or JSON site configuration.
    output : Path or None, optional
        Destination file; the HTML is printed when omitted.
    links : bool, optional
        Published-page audience showing only the link list.
    sections_only : bool, optional
        Published-page audience showing everything except the link list.
    selected_index : int or None, optional
        Editor selection; reveals a link list page that is otherwise hidden.
    preview : bool, optional
        Standalone preview mode.
    title : str or None, optional
        Override the document title.

    Raises
    ------
    ValueError
        If both ``links`` and ``sections_only`` are requested.
    """
    context = _render_context(
        links=links, sections_only=sections_only, selected_index=selected_index, preview=preview
    )
    result = render_site(load_site_config(config), context)
    builder = SitePageBuilder(result, title=title)
    if output is None:
        print(builder.render(), end="")
        return
    written = builder.write(output)
    print(f"wrote {_format_path(written)}")


@app.command(name="vars", help="Print theme and section CSS variables as JSON.")
def show_vars(
    config: typ.Annotated[Path, Parameter(help="Site configuration (YAML or JSON)")],
) -> None:
    """Print the resolved theme variables and each section's variables."""
    result = render_site(load_site_config(config))
    payload = {
        "theme": dict(result.theme.variables),
        "sections": [
            {
                "index": entry.index,
                "id": entry.section.id,
                "type": entry.section.type,
                "variables": dict(entry.variables),
            }
            for entry in result.sections
        ],
    }
    print(json.dumps(payload, indent=2))


@app.command(help="List the section types that can be added to a draft.")
def sections() -> None:
    for section_type in addable_types():
        print(section_type)


def _require_remote(settings: Settings) -> str:
    base_url = settings.remote.base_url
    if not base_url:
        msg = "No remote store configured; set SB_API_URL or [remote].base_url."
        raise SiteStoreError(msg)
    return base_url


def _open_site(
    business_id: str, settings: Settings
) -> tuple[SiteStoreClient, DraftLifecycleManager, ProvisionPublishStateMachine]:
    client = SiteStoreClient(
        _require_remote(settings),
        token=settings.remote.token,
        csrf_token=settings.remote.csrf_token,
        timeout=settings.remote.timeout,
    )
    manager = DraftLifecycleManager(
        business_id,
        store=client,
        cache=FileCache(settings.cache_dir),
        autosave_debounce=settings.timing.autosave_debounce,
    )
    machine = ProvisionPublishStateMachine(
        manager,
        apex_domain=settings.apex_domain,
        poll_interval=settings.timing.poll_interval,
        max_poll_attempts=settings.timing.max_poll_attempts,
    )
    return client, manager, machine


async def _run_provision(machine: ProvisionPublishStateMachine, slug: str | None) -> PublishStatus:
    manager = machine.lifecycle
    try:
        await manager.hydrate()
        await machine.load_settings()
        if machine.status is PublishStatus.PROVISIONED or machine.status is PublishStatus.LIVE:
            return machine.status
        if await machine.provision(slug):
            await machine.wait_for_provisioning()
        return machine.status
    finally:
        await machine.close()
        await manager.close()


@app.command(help="Provision hosting for a business's site and wait for it.")
def provision(
    business_id: typ.Annotated[str, Parameter(help="Business identifier")],
    *,
    slug: typ.Annotated[str | None, Parameter(help="Subdomain to request")] = None,
    config_path: SettingsPath = DEFAULT_CONFIG_PATH,
) -> None:
    """Provision ``business_id`` and poll until hosting is ready or fails.

    Raises
    ------
    SiteStoreError
        If provisioning ends in the ``error`` state or never starts.
    """
    client, _manager, machine = _open_site(business_id, load_settings(config_path))
    try:
        status = asyncio.run(_run_provision(machine, slug))
    finally:
        client.close()
    if status not in (PublishStatus.PROVISIONED, PublishStatus.LIVE):
        msg = f"Provisioning ended in {status}: {machine.last_error or 'request refused'}"
        raise SiteStoreError(msg)
    print(f"{business_id}: {status}")


async def _run_publish(machine: ProvisionPublishStateMachine) -> bool:
    manager = machine.lifecycle
    try:
        await manager.hydrate()
        await machine.load_settings()
        return await machine.publish()
    finally:
        await machine.close()
        await manager.close()


@app.command(help="Publish the current draft of a provisioned site.")
def publish(
    business_id: typ.Annotated[str, Parameter(help="Business identifier")],
    *,
    config_path: SettingsPath = DEFAULT_CONFIG_PATH,
) -> None:
    """Publish the stored draft for ``business_id``.

    Nothing is sent when the draft matches the published copy.
    """
    client, manager, machine = _open_site(business_id, load_settings(config_path))
    try:
        published = asyncio.run(_run_publish(machine))
    finally:
        client.close()
    if published:
        print(f"{business_id}: live (run {machine.run_id})")
    elif machine.status is PublishStatus.ERROR:
        msg = f"Publish failed: {machine.last_error}"
        raise SiteStoreError(msg)
    elif not manager.state.has_unpublished_changes:
        print(f"{business_id}: no unpublished changes")
    else:
        print(f"{business_id}: cannot publish from {machine.status}")


@app.command(help="Show a site's provision status or a publish task's status.")
def status(
    business_id: typ.Annotated[str, Parameter(help="Business identifier")],
    *,
    task_id: typ.Annotated[str | None, Parameter(help="Publish task to query")] = None,
    config_path: SettingsPath = DEFAULT_CONFIG_PATH,
) -> None:
    client, manager, machine = _open_site(business_id, load_settings(config_path))
    try:
        if task_id:
            result = asyncio.run(machine.publish_status(task_id)).raise_for_status()
            print(json.dumps(result.data, indent=2))
            return
        asyncio.run(machine.load_settings())
    finally:
        client.close()
    print(f"{manager.state.slug or '-'}: {machine.status}")


@app.command(help="List the saved versions of a business's site.")
def versions(
    business_id: typ.Annotated[str, Parameter(help="Business identifier")],
    *,
    config_path: SettingsPath = DEFAULT_CONFIG_PATH,
) -> None:
    client, manager, _machine = _open_site(business_id, load_settings(config_path))
    try:
        records = asyncio.run(manager.list_versions())
    finally:
        client.close()
    for record in records:
        flags = "".join(
            marker
            for marker, enabled in (("*", record.is_current), ("P", record.is_published))
            if enabled
        )
        created = record.created_at.isoformat() if record.created_at else "-"
        print(f"{record.id}\t{flags or '-'}\t{created}\t{record.sections_count}\t{record.note}")


async def _run_restore(manager: DraftLifecycleManager, version_id: str) -> bool:
    try:
        manager.hydrate_local()
        return await manager.restore_version(version_id)
    finally:
        await manager.close()


@app.command(help="Restore a saved version as a new draft version.")
def restore(
    business_id: typ.Annotated[str, Parameter(help="Business identifier")],
    version_id: typ.Annotated[str, Parameter(help="Version to restore")],
    *,
    config_path: SettingsPath = DEFAULT_CONFIG_PATH,
) -> None:
    client, manager, _machine = _open_site(business_id, load_settings(config_path))
    try:
        restored = asyncio.run(_run_restore(manager, version_id))
    finally:
        client.close()
    if not restored:
        msg = f"Could not restore version {version_id}: {manager.state.last_remote_error}"
        raise SiteStoreError(msg)
    print(f"restored {version_id}")


@app.meta.default
def launcher(
    *tokens: typ.Annotated[str, Parameter(show=False, allow_leading_hyphen=True)],
    verbose: typ.Annotated[bool, Parameter(help="Log at DEBUG level")] = False,
    json_logs: typ.Annotated[bool, Parameter(help="Emit logs as JSON lines")] = False,
) -> None:
    """Configure logging, then dispatch to the requested command."""
    configure_logging(logging.DEBUG if verbose else logging.WARNING, json_output=json_logs)
    app(tokens)


def main() -> None:
    """Invoke the Cyclopts application that powers the ``sb`` console command.

    Examples
    --------
    >>> main()  # doctest: +SKIP
    """
    app.meta()


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()
