"""Draft lifecycle: local-first hydration, debounced autosave and versions.

The :class:`DraftLifecycleManager` owns the in-memory draft/published pair
for one business. State is exposed as an immutable :class:`LifecycleState`
snapshot; every change replaces the snapshot and notifies subscribers, which
recompute renders or status displays from it.

Persistence is a two-step saga. After two seconds without edits the draft is
written to the local cache synchronously, and only then sent to the remote
store. A remote failure is logged and recorded on the state but never undoes
the local write.

Examples
--------
>>> import asyncio
>>> from sb_sites.cache import MemoryCache
>>> manager = DraftLifecycleManager("42", store=store, cache=MemoryCache())  # doctest: +SKIP
>>> asyncio.run(manager.hydrate())  # doctest: +SKIP
>>> manager.state.has_unpublished_changes  # doctest: +SKIP
False
"""

from __future__ import annotations

import asyncio
import dataclasses as dc
import datetime as dt
import logging
import typing as typ

from ._constants import (
    AUTOSAVE_DEBOUNCE_SECONDS,
    CACHE_KEY_TEMPLATE,
    DEFAULT_CONFIG_VERSION,
    REVERT_KEY_TEMPLATE,
)
from .config.helpers import merge_theme, normalize_slug
from .config.loader import (
    dump_draft_record,
    parse_draft_record,
    parse_optional_site_config,
    parse_version_list,
)
from .config.models import DraftRecord, Section, SiteConfig, SiteTheme, VersionRecord
from .registry import get_rule, insert_position, is_addable, normalize_sections
from .remote import RemoteResult
from .scheduling import ScheduledTask

if typ.TYPE_CHECKING:
    from .cache import LocalCache
    from .remote import SiteStore

logger = logging.getLogger(__name__)

Listener = typ.Callable[["LifecycleState"], None]

_DRAFT_FIELDS = frozenset({"version", "business_id", "theme", "sections", "meta"})
_IMMUTABLE_SECTION_FIELDS = frozenset({"id", "type"})


@dc.dataclass(frozen=True, slots=True)
class LifecycleState:
    """Snapshot of the editor's draft/published pair and preview state."""

    draft: SiteConfig | None = None
    published: SiteConfig | None = None
    slug: str = ""
    last_saved_at: dt.datetime | None = None
    previewing_version_id: str | None = None
    previewing_config: SiteConfig | None = None
    platform_data: typ.Mapping[str, typ.Any] | None = None
    selected_index: int | None = None
    last_remote_error: str | None = None

    @property
    def is_preview_mode(self) -> bool:
        return self.previewing_version_id is not None

    @property
    def has_unpublished_changes(self) -> bool:
        """True when the draft differs from the published configuration."""
        if self.draft is None:
            return False
        return self.draft != self.published


def _normalized(config: SiteConfig) -> SiteConfig:
    return dc.replace(config, sections=normalize_sections(config.sections))


def _default_draft(business_id: str) -> SiteConfig:
    return SiteConfig(version=DEFAULT_CONFIG_VERSION, business_id=business_id, theme=SiteTheme())


class DraftLifecycleManager:
    """Own one business's draft, its persistence and its version preview."""

    def __init__(
        self,
        business_id: str,
        *,
        store: SiteStore,
        cache: LocalCache,
        autosave_debounce: float = AUTOSAVE_DEBOUNCE_SECONDS,
    ) -> None:
        """Initialise the manager without touching storage.

        Parameters
        ----------
        business_id : str
            Business whose site is edited; keys the local cache entries.
        store : SiteStore
            Remote store. Its blocking calls run in a worker thread.
        cache : LocalCache
            Synchronous local cache used for hydration and the first autosave
            step.
        autosave_debounce : float, optional
            Seconds of quiescence before an autosave fires. Defaults to 2.
        """
        self.business_id = business_id
        self.store = store
        self.cache = cache
        self.autosave_debounce = autosave_debounce
        self._state = LifecycleState()
        self._listeners: list[Listener] = []
        self._hydrated_from_local = False
        self._skip_next_autosave = False
        self._revert_pending = False
        self._autosave = ScheduledTask(f"autosave:{business_id}")

    @property
    def cache_key(self) -> str:
        return CACHE_KEY_TEMPLATE.format(business_id=self.business_id)

    @property
    def revert_key(self) -> str:
        return REVERT_KEY_TEMPLATE.format(business_id=self.business_id)

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def autosave_pending(self) -> bool:
        return self._autosave.active

    def subscribe(self, listener: Listener) -> typ.Callable[[], None]:
        """Register ``listener`` for state changes; return an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_state(self, **changes: typ.Any) -> None:
        self._state = dc.replace(self._state, **changes)
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception:
                logger.exception("Lifecycle listener %r failed", listener)

    async def _call(self, method: typ.Callable[..., RemoteResult], *args: typ.Any) -> RemoteResult:
        try:
            return await asyncio.to_thread(method, *args)
        except Exception as exc:
            logger.warning("Remote call %s failed", getattr(method, "__name__", method), exc_info=True)
            return RemoteResult(ok=False, error=str(exc))

    # Hydration -----------------------------------------------------------

    def hydrate_local(self) -> bool:
        """Adopt the cached draft when it has sections; return True if adopted."""
        record = parse_draft_record(self.cache.get(self.cache_key))
        if record is None:
            self._hydrated_from_local = False
            return False
        changes: dict[str, typ.Any] = {}
        if record.slug:
            changes["slug"] = record.slug
        adopted = record.draft is not None and bool(record.draft.sections)
        if adopted:
            changes["draft"] = record.draft
        self._hydrated_from_local = adopted
        if changes:
            self._set_state(**changes)
        return adopted

    async def hydrate(self) -> None:
        """Hydrate from the local cache, then reconcile with the remote store."""
        self.hydrate_local()
        await self.reload()

    def _consume_revert_flag(self) -> bool:
        if not (self._revert_pending or self.cache.get(self.revert_key)):
            return False
        self._revert_pending = False
        self._skip_next_autosave = True
        self.cache.delete(self.revert_key)
        return True

    async def reload(self) -> None:
        """Fetch the remote draft/published pair and platform data.

        The remote draft replaces the in-memory draft only when it has
        sections, and only when the draft was not just hydrated locally or a
        restore has happened since. Transport failures leave state untouched.
        """
        result = await self._call(self.store.load_draft, self.business_id)
        if result.ok and isinstance(result.data, dict):
            self._apply_remote_record(result.data)
        elif not result.ok:
            logger.warning("Could not load remote draft for %s: %s", self.business_id, result.error)
            self._set_state(last_remote_error=result.error)

        platform = await self._call(self.store.fetch_public_site_data, self.business_id)
        if platform.ok and isinstance(platform.data, dict):
            platform_data = platform.data.get("platform_data")
            if isinstance(platform_data, dict):
                self._set_state(platform_data=platform_data)

    def _apply_remote_record(self, data: typ.Mapping[str, typ.Any]) -> None:
        reverted = self._consume_revert_flag()
        changes: dict[str, typ.Any] = {}
        remote_draft = parse_optional_site_config(data.get("draft"))
        should_load = not self._hydrated_from_local or reverted
        if should_load and remote_draft is not None and remote_draft.sections:
            draft = _normalized(remote_draft)
            changes["draft"] = draft
            remote_slug = str(data.get("slug") or "")
            if remote_slug and not self._state.slug:
                changes["slug"] = remote_slug
            if reverted:
                self._write_local(DraftRecord(slug=remote_slug, draft=draft))

        remote_published = parse_optional_site_config(data.get("published"))
        if remote_published is not None:
            changes["published"] = _normalized(remote_published)
        elif self._state.published is not None:
            # Publishing completes in the background; keep the copy marked locally.
            logger.debug("Remote store has no published copy yet for %s", self.business_id)
        changes["last_remote_error"] = None
        self._set_state(**changes)
        if reverted:
            # The restored draft counts as a change; the skip flag swallows it.
            self._schedule_autosave()

    # Mutations -----------------------------------------------------------

    def _editable(self, action: str) -> bool:
        if self._state.is_preview_mode:
            logger.warning(
                "Refusing %s while previewing version %s",
                action,
                self._state.previewing_version_id,
            )
            return False
        return True

    def _commit_draft(self, draft: SiteConfig) -> None:
        self._set_state(draft=draft)
        self._schedule_autosave()

    def set_slug(self, slug: str) -> bool:
        if not self._editable("slug change"):
            return False
        self._set_state(slug=slug.strip())
        self._schedule_autosave()
        return True

    def update_draft(self, patch: typ.Mapping[str, typ.Any]) -> bool:
        """Replace top-level draft fields; ``sections`` are normalised."""
        if not self._editable("draft update"):
            return False
        unknown = set(patch) - _DRAFT_FIELDS
        if unknown:
            logger.warning("Ignoring unknown draft fields: %s", sorted(unknown))
        changes = {key: value for key, value in patch.items() if key in _DRAFT_FIELDS}
        if "sections" in changes:
            changes["sections"] = normalize_sections(changes["sections"])
        base = self._state.draft or _default_draft(self.business_id)
        self._commit_draft(dc.replace(base, **changes))
        return True

    def update_theme(self, patch: typ.Mapping[str, typ.Any]) -> bool:
        """Replace-merge a camelCase theme mapping into the draft theme."""
        if not self._editable("theme update"):
            return False
        draft = self._state.draft
        if draft is None:
            logger.warning("Ignoring theme update: no draft loaded")
            return False
        self._commit_draft(dc.replace(draft, theme=merge_theme(draft.theme, patch)))
        return True

    def add_section(self, section: Section) -> bool:
        """Insert ``section`` at its type's default position.

        A default draft is created when none exists yet. Types outside the
        add-section menu, and a second copy of a singleton type, are refused.
        """
        if not self._editable("section add"):
            return False
        if not is_addable(section.type):
            logger.warning("Section type %r cannot be added", section.type)
            return False
        draft = self._state.draft or _default_draft(self.business_id)
        if get_rule(section.type).singleton and any(
            existing.type == section.type for existing in draft.sections
        ):
            logger.warning("Draft already has a %s section", section.type)
            return False
        sections = list(draft.sections)
        sections.insert(insert_position(sections, section.type), section)
        self._commit_draft(dc.replace(draft, sections=normalize_sections(sections)))
        return True

    def remove_section(self, index: int) -> bool:
        if not self._editable("section removal"):
            return False
        draft = self._state.draft
        if draft is None or not 0 <= index < len(draft.sections):
            logger.warning("Ignoring removal of missing section index %s", index)
            return False
        sections = list(draft.sections)
        del sections[index]
        self._commit_draft(dc.replace(draft, sections=sections))
        return True

    def update_section(self, index: int, patch: typ.Mapping[str, typ.Any]) -> bool:
        """Apply a field patch to the section at ``index``.

        Parameters
        ----------
        index : int
            Position of the section in the draft.
        patch : Mapping[str, Any]
            Field names of the section dataclass mapped to new values. ``id``
            and ``type`` are immutable and unknown fields are dropped, each
            with a diagnostic; ``slug`` is normalised.

        Returns
        -------
        bool
            True when the draft changed.
        """
        if not self._editable("section update"):
            return False
        draft = self._state.draft
        if draft is None or not 0 <= index < len(draft.sections):
            logger.warning("Ignoring update of missing section index %s", index)
            return False
        section = draft.sections[index]
        allowed = {field.name for field in dc.fields(section)} - _IMMUTABLE_SECTION_FIELDS
        changes: dict[str, typ.Any] = {}
        for key, value in patch.items():
            if key not in allowed:
                logger.warning("Ignoring field %r in patch for section %s", key, section.id)
                continue
            changes[key] = normalize_slug(value) if key == "slug" else value
        if not changes:
            return False
        sections = list(draft.sections)
        sections[index] = dc.replace(section, **changes)
        self._commit_draft(dc.replace(draft, sections=sections))
        return True

    def reorder_sections(self, sections: typ.Sequence[Section]) -> bool:
        """Replace the section order; the link list stays pinned first."""
        if not self._editable("section reorder"):
            return False
        draft = self._state.draft
        if draft is None:
            logger.warning("Ignoring reorder: no draft loaded")
            return False
        self._commit_draft(dc.replace(draft, sections=normalize_sections(sections)))
        return True

    def set_selected_index(self, index: int | None) -> None:
        self._set_state(selected_index=index)

    def mark_published(self) -> None:
        """Record that the current draft is now the published copy."""
        self._set_state(published=self._state.draft)

    # Autosave saga -------------------------------------------------------

    def _schedule_autosave(self) -> None:
        self._autosave.schedule(self.autosave_debounce, self._autosave_fired)

    def _write_local(self, record: DraftRecord) -> bool:
        try:
            self.cache.set(self.cache_key, dump_draft_record(record))
        except (OSError, TypeError, ValueError):
            logger.exception("Local autosave failed for %s", self.business_id)
            return False
        return True

    async def _autosave_fired(self) -> None:
        if self._skip_next_autosave:
            self._skip_next_autosave = False
            logger.info("Skipping autosave after version restore for %s", self.business_id)
            return
        record = DraftRecord(slug=self._state.slug, draft=self._state.draft)
        if not self._write_local(record):
            return
        self._set_state(last_saved_at=dt.datetime.now(dt.UTC))
        result = await self._call(self.store.save_draft, self.business_id, dump_draft_record(record))
        if result.ok:
            logger.debug("Draft for %s autosaved remotely", self.business_id)
            self._set_state(last_remote_error=None)
        else:
            logger.warning(
                "Remote autosave failed for %s (local copy kept): %s",
                self.business_id,
                result.error,
            )
            self._set_state(last_remote_error=result.error)

    async def wait_for_autosave(self) -> None:
        """Wait until the pending autosave, if any, has completed."""
        await self._autosave.wait()

    async def save(self) -> bool:
        """Send the current draft to the remote store immediately."""
        record = DraftRecord(slug=self._state.slug, draft=self._state.draft)
        result = await self._call(self.store.save_draft, self.business_id, dump_draft_record(record))
        if not result.ok:
            logger.warning("Explicit save failed for %s: %s", self.business_id, result.error)
            self._set_state(last_remote_error=result.error)
            return False
        self._set_state(last_saved_at=dt.datetime.now(dt.UTC), last_remote_error=None)
        return True

    # Versions ------------------------------------------------------------

    async def list_versions(self) -> list[VersionRecord]:
        result = await self._call(self.store.list_versions, self.business_id)
        if not result.ok:
            logger.warning("Could not list versions for %s: %s", self.business_id, result.error)
            return []
        return parse_version_list(result.data)

    async def start_preview(self, version_id: str) -> bool:
        """Load ``version_id`` read-only alongside the live draft."""
        result = await self._call(self.store.get_version_content, self.business_id, version_id)
        content = result.data.get("data") if isinstance(result.data, dict) else None
        config = parse_optional_site_config(content) if result.ok else None
        if config is None:
            logger.warning(
                "Could not preview version %s: %s",
                version_id,
                result.error or "no content returned",
            )
            return False
        self._set_state(previewing_version_id=version_id, previewing_config=_normalized(config))
        return True

    def exit_preview(self) -> None:
        self._set_state(previewing_version_id=None, previewing_config=None)

    async def restore_version(self, version_id: str | None = None) -> bool:
        """Restore a version as a brand-new remote version and reload it.

        Defaults to the version being previewed. The next autosave cycle is
        skipped once so stale in-memory content cannot overwrite the restored
        server state.
        """
        target = version_id or self._state.previewing_version_id
        if not target:
            logger.warning("No version to restore for %s", self.business_id)
            return False
        # A pending autosave must not land stale content after the revert.
        had_pending_autosave = self._autosave.cancel()
        result = await self._call(self.store.revert_version, self.business_id, target)
        if not result.ok:
            logger.warning("Restore of version %s failed: %s", target, result.error)
            self._set_state(last_remote_error=result.error)
            if had_pending_autosave:
                self._schedule_autosave()
            return False
        self._skip_next_autosave = True
        self._revert_pending = True
        try:
            self.cache.set(self.revert_key, True)
        except (OSError, TypeError, ValueError):
            logger.exception("Could not record restore flag for %s", self.business_id)
        self.exit_preview()
        await self.reload()
        return True

    async def close(self) -> None:
        """Cancel any pending autosave."""
        await self._autosave.stop()


__all__ = ["DraftLifecycleManager", "LifecycleState", "Listener"]
