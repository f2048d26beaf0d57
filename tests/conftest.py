"""Shared fixtures: sample site payloads and an in-memory remote store."""

from __future__ import annotations

import copy
import time
import typing as typ

import pytest

from sb_sites.cache import MemoryCache
from sb_sites.remote import RemoteResult

SAMPLE_SITE: dict[str, typ.Any] = {
    "version": "1.0",
    "business_id": "42",
    "theme": {
        "theme_version": "1.1",
        "mode": "light",
        "accent": "green",
        "typography": {
            "preset": "modern",
            "displayScale": "standard",
            "textScale": "standard",
            "adaptiveTitles": True,
        },
    },
    "sections": [
        {
            "id": "hero-1",
            "type": "hero",
            "slug": "welcome",
            "title": "Welcome to the studio",
            "subtitle": "Classes every day",
            "backgroundImageUrl": "https://img.example.com/bg.jpg",
            "imageOverlay": {"type": "dark", "intensity": "medium"},
        },
        {
            "id": "links-1",
            "type": "links_page",
            "title": "Find us",
            "links": [
                {"id": "l1", "label": "Book", "href": "https://book.example.com"},
            ],
        },
        {
            "id": "content-1",
            "type": "content_block",
            "title": "About",
            "body": "First line\nsecond line\n\nNew paragraph",
            "layout": "media_right",
        },
    ],
    "meta": {},
}


def sample_site() -> dict[str, typ.Any]:
    """Return a fresh deep copy of :data:`SAMPLE_SITE`."""
    return copy.deepcopy(SAMPLE_SITE)


class FakeSiteStore:
    """In-memory :class:`~sb_sites.remote.SiteStore` recording every call."""

    def __init__(self) -> None:
        self.record: dict[str, typ.Any] = {"slug": "", "draft": None, "published": None}
        self.site_settings: dict[str, typ.Any] = {}
        self.provision_response: dict[str, typ.Any] = {"ok": True, "status": "provisioning"}
        self.provision_statuses: list[str] = []
        self.publish_response: dict[str, typ.Any] = {"ok": True, "run_id": "run-1", "task_id": "task-1"}
        self.versions: dict[str, dict[str, typ.Any]] = {}
        self.platform_data: dict[str, typ.Any] = {"business_info": {"name": "Studio"}}
        self.failing: set[str] = set()
        self.delays: dict[str, float] = {}
        self.echo_published = True
        self.calls: list[tuple[str, tuple[typ.Any, ...]]] = []

    def _result(self, name: str, args: tuple[typ.Any, ...], data: typ.Any) -> RemoteResult:
        self.calls.append((name, args))
        if name in self.delays:
            time.sleep(self.delays[name])
        if name in self.failing:
            return RemoteResult(ok=False, status_code=500, error=f"{name} failed")
        return RemoteResult(ok=True, status_code=200, data=copy.deepcopy(data))

    def called(self, name: str) -> list[tuple[typ.Any, ...]]:
        return [args for call, args in self.calls if call == name]

    def load_draft(self, business_id: str) -> RemoteResult:
        return self._result("load_draft", (business_id,), self.record)

    def save_draft(self, business_id: str, payload: typ.Mapping[str, typ.Any]) -> RemoteResult:
        result = self._result("save_draft", (business_id, copy.deepcopy(dict(payload))), {"ok": True})
        if result.ok:
            self.record = {**self.record, **copy.deepcopy(dict(payload))}
        return result

    def get_site_settings(self, business_id: str) -> RemoteResult:
        return self._result("get_site_settings", (business_id,), self.site_settings)

    def provision(self, business_id: str, payload: typ.Mapping[str, typ.Any]) -> RemoteResult:
        return self._result("provision", (business_id, dict(payload)), self.provision_response)

    def get_provision_status(self, business_id: str) -> RemoteResult:
        status = self.provision_statuses.pop(0) if self.provision_statuses else "provisioning"
        return self._result("get_provision_status", (business_id,), {"status": status})

    def publish(self, business_id: str, payload: typ.Mapping[str, typ.Any]) -> RemoteResult:
        result = self._result("publish", (business_id, copy.deepcopy(dict(payload))), self.publish_response)
        if result.ok and self.echo_published:
            self.record = {**self.record, "published": copy.deepcopy(payload["draft"])}
        return result

    def get_publish_status(self, task_id: str) -> RemoteResult:
        return self._result("get_publish_status", (task_id,), {"task_id": task_id, "state": "SUCCESS"})

    def list_versions(self, business_id: str) -> RemoteResult:
        entries = [{"id": key, "note": value.get("note", "")} for key, value in self.versions.items()]
        return self._result("list_versions", (business_id,), {"versions": entries})

    def get_version_content(self, business_id: str, version_id: str) -> RemoteResult:
        version = self.versions.get(version_id)
        if version is None:
            self.calls.append(("get_version_content", (business_id, version_id)))
            return RemoteResult(ok=False, status_code=404, error="Version not found")
        return self._result("get_version_content", (business_id, version_id), {"data": version["data"]})

    def revert_version(self, business_id: str, version_id: str) -> RemoteResult:
        result = self._result("revert_version", (business_id, version_id), {"ok": True})
        if result.ok and version_id in self.versions:
            self.record = {**self.record, "draft": copy.deepcopy(self.versions[version_id]["data"])}
        return result

    def fetch_public_site_data(self, business_id: str) -> RemoteResult:
        return self._result("fetch_public_site_data", (business_id,), {"platform_data": self.platform_data})


@pytest.fixture
def store() -> FakeSiteStore:
    return FakeSiteStore()


@pytest.fixture
def cache() -> MemoryCache:
    return MemoryCache()


@pytest.fixture
def site_payload() -> dict[str, typ.Any]:
    return sample_site()
