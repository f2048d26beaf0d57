"""Provision and publish state machine with bounded status polling.

The machine moves a site through ``not_provisioned -> provisioning ->
provisioned -> publishing -> live``. Any remote failure lands in ``error``,
from which provisioning or publishing may be retried.

Provisioning is asynchronous on the server side, so after the provision
request the machine polls ``provision-status`` on a fixed interval until the
site reports ``provisioned`` or ``error``, or the attempt cap is reached. Only
one poll loop exists per machine; starting another cancels the first.
"""

from __future__ import annotations

import asyncio
import logging
import typing as typ

from ._constants import (
    DEFAULT_APEX_DOMAIN,
    MAX_POLL_ATTEMPTS,
    POLL_INTERVAL_SECONDS,
    SITE_SLUG_PATTERN,
)
from .config.loader import dump_site_config
from .config.models import ProvisionStatus, PublishStatus
from .remote import RemoteResult
from .scheduling import ScheduledTask

if typ.TYPE_CHECKING:
    from .lifecycle import DraftLifecycleManager
    from .remote import SiteStore

logger = logging.getLogger(__name__)

_PROVISIONABLE = frozenset({PublishStatus.NOT_PROVISIONED, PublishStatus.ERROR})
_PUBLISHABLE = frozenset({PublishStatus.PROVISIONED, PublishStatus.LIVE, PublishStatus.ERROR})


def is_valid_site_slug(slug: str) -> bool:
    """Return True when ``slug`` may be used as a hosting subdomain.

    Examples
    --------
    >>> is_valid_site_slug("my-studio")
    True
    >>> is_valid_site_slug("My Studio")
    False
    """
    return bool(SITE_SLUG_PATTERN.fullmatch(slug))


def _coerce_status(value: object) -> ProvisionStatus | None:
    if not isinstance(value, str):
        return None
    try:
        return ProvisionStatus(value)
    except ValueError:
        logger.warning("Ignoring unknown provision status %r", value)
        return None


def _reported_status(data: object) -> ProvisionStatus | None:
    if not isinstance(data, dict):
        return None
    for key in ("provision_status", "status"):
        status = _coerce_status(data.get(key))
        if status is not None:
            return status
    return None


class ProvisionPublishStateMachine:
    """Drive provisioning and publishing for one business's site."""

    def __init__(
        self,
        lifecycle: DraftLifecycleManager,
        *,
        store: SiteStore | None = None,
        apex_domain: str = DEFAULT_APEX_DOMAIN,
        poll_interval: float = POLL_INTERVAL_SECONDS,
        max_poll_attempts: int = MAX_POLL_ATTEMPTS,
    ) -> None:
        """Bind the machine to a lifecycle manager.

        Parameters
        ----------
        lifecycle : DraftLifecycleManager
            Supplies the draft, the slug and the unpublished-changes flag, and
            is reloaded after a successful publish.
        store : SiteStore, optional
            Remote store; defaults to the lifecycle manager's store.
        apex_domain : str, optional
            Domain the site slug is provisioned under.
        poll_interval : float, optional
            Seconds between provision status polls. Defaults to 10.
        max_poll_attempts : int, optional
            Polls before giving up with ``error``. Defaults to 30.
        """
        self.lifecycle = lifecycle
        self.store = store or lifecycle.store
        self.apex_domain = apex_domain
        self.poll_interval = poll_interval
        self.max_poll_attempts = max_poll_attempts
        self.status = PublishStatus.NOT_PROVISIONED
        self.slug_read_only = False
        self.task_id: str | None = None
        self.run_id: str | None = None
        self.poll_attempts = 0
        self.last_error: str | None = None
        self._poller = ScheduledTask(f"provision-poll:{lifecycle.business_id}")

    @property
    def business_id(self) -> str:
        return self.lifecycle.business_id

    @property
    def polling(self) -> bool:
        return self._poller.active

    @property
    def can_provision(self) -> bool:
        return self.status in _PROVISIONABLE and is_valid_site_slug(self.lifecycle.state.slug)

    @property
    def can_publish(self) -> bool:
        state = self.lifecycle.state
        return (
            self.status in _PUBLISHABLE
            and state.draft is not None
            and is_valid_site_slug(state.slug)
            and state.has_unpublished_changes
        )

    def _fail(self, message: str | None) -> None:
        self.status = PublishStatus.ERROR
        self.last_error = message
        logger.warning("Site %s moved to error: %s", self.business_id, message)

    async def _call(self, method: typ.Callable[..., RemoteResult], *args: typ.Any) -> RemoteResult:
        try:
            return await asyncio.to_thread(method, *args)
        except Exception as exc:
            logger.warning("Remote call %s failed", getattr(method, "__name__", method), exc_info=True)
            return RemoteResult(ok=False, error=str(exc))

    async def load_settings(self) -> None:
        """Adopt the stored slug and provision status, if any."""
        result = await self._call(self.store.get_site_settings, self.business_id)
        if not result.ok or not isinstance(result.data, dict):
            logger.warning("Could not load site settings for %s: %s", self.business_id, result.error)
            return
        site_slug = result.data.get("site_slug")
        if isinstance(site_slug, str) and site_slug:
            # A provisioned subdomain cannot be renamed.
            self.lifecycle.set_slug(site_slug)
            self.slug_read_only = True
        status = _reported_status(result.data)
        if status is not None:
            self.status = PublishStatus(status)

    async def provision(self, slug: str | None = None) -> bool:
        """Request hosting for ``slug`` and start polling until it settles.

        The slug is validated locally first; invalid slugs never reach the
        remote store. Returns True when the request was accepted.
        """
        if self.status not in _PROVISIONABLE:
            logger.warning("Cannot provision %s from status %s", self.business_id, self.status)
            return False
        target = self.lifecycle.state.slug if slug is None else slug.strip()
        if not is_valid_site_slug(target):
            logger.warning("Refusing to provision invalid slug %r", target)
            return False
        if target != self.lifecycle.state.slug and not self.lifecycle.set_slug(target):
            return False

        await self._poller.stop()
        self.status = PublishStatus.PROVISIONING
        self.last_error = None
        result = await self._call(
            self.store.provision,
            self.business_id,
            {"slug": target, "apex_domain": self.apex_domain},
        )
        if not result.ok:
            self._fail(result.error)
            return False
        self.slug_read_only = True
        match _reported_status(result.data):
            case ProvisionStatus.PROVISIONED:
                self.status = PublishStatus.PROVISIONED
            case ProvisionStatus.ERROR:
                self._fail("Provisioning was rejected")
                return False
            case _:
                self.poll_attempts = 0
                self._poller.schedule(self.poll_interval, self._poll)
        return True

    async def _poll(self) -> None:
        """Poll provision status until it settles or the cap is reached."""
        while True:
            self.poll_attempts += 1
            result = await self._call(self.store.get_provision_status, self.business_id)
            if not result.ok:
                self._fail(result.error)
                return
            match _reported_status(result.data):
                case ProvisionStatus.PROVISIONED:
                    self.status = PublishStatus.PROVISIONED
                    logger.info("Site %s provisioned", self.business_id)
                    return
                case ProvisionStatus.ERROR:
                    self._fail("Provisioning failed remotely")
                    return
            if self.poll_attempts >= self.max_poll_attempts:
                self._fail(f"Provisioning did not finish after {self.poll_attempts} checks")
                return
            await asyncio.sleep(self.poll_interval)

    async def wait_for_provisioning(self) -> None:
        """Wait until the active poll loop, if any, has stopped."""
        await self._poller.wait()

    async def publish(self) -> bool:
        """Publish the current draft when there is something new to publish."""
        if not self.can_publish:
            logger.warning(
                "Cannot publish %s from status %s without unpublished changes",
                self.business_id,
                self.status,
            )
            return False
        state = self.lifecycle.state
        draft = state.draft
        if draft is None:  # pragma: no cover - defensive guard
            return False
        self.status = PublishStatus.PUBLISHING
        self.last_error = None
        result = await self._call(
            self.store.publish,
            self.business_id,
            {"slug": state.slug, "draft": dump_site_config(draft)},
        )
        data = result.data if isinstance(result.data, dict) else {}
        run_id = data.get("run_id")
        if not result.ok or not run_id:
            self._fail(result.error or "Publish response did not include a run id")
            return False
        self.run_id = str(run_id)
        task_id = data.get("task_id")
        self.task_id = str(task_id) if task_id else None
        self.status = PublishStatus.LIVE
        logger.info("Published %s (run %s)", self.business_id, self.run_id)
        self.lifecycle.mark_published()
        await self.lifecycle.reload()
        return True

    async def publish_status(self, task_id: str | None = None) -> RemoteResult:
        """Query the publish task, defaulting to the last one started."""
        target = task_id or self.task_id
        if not target:
            return RemoteResult(ok=False, error="No publish task to query")
        return await self._call(self.store.get_publish_status, target)

    async def close(self) -> None:
        """Cancel any active poll loop."""
        await self._poller.stop()


__all__ = ["ProvisionPublishStateMachine", "is_valid_site_slug"]
