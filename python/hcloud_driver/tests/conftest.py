"""
Shared fakes for the driver tests.

FakePageTransport serves canned pages per resource the way the inventory API
does (item array under the resource name plus meta.pagination.last_page).
FakeAggregator stands in for ResourceAggregator in reconciler tests.
"""

import asyncio
from typing import Any, Dict, List, Optional, Tuple

import pytest

from hcloud_driver.models.options import ResourceCatalog, ResourceKind, SelectableOption
from hcloud_driver.services.aggregator import CatalogLoadResult


class FakePageTransport:
    def __init__(
        self,
        pages: Dict[str, List[List[Dict[str, Any]]]],
        errors: Optional[Dict[str, Exception]] = None,
        last_page_override: Optional[Dict[str, Optional[int]]] = None,
    ) -> None:
        self.pages = pages
        self.errors = errors or {}
        self.last_page_override = last_page_override or {}
        self.calls: List[Tuple[str, int]] = []

    async def get_page(self, resource: str, page: int) -> Dict[str, Any]:
        self.calls.append((resource, page))
        if resource in self.errors:
            raise self.errors[resource]
        resource_pages = self.pages.get(resource, [])
        items = resource_pages[page - 1] if page <= len(resource_pages) else []
        last_page = self.last_page_override.get(resource, len(resource_pages))
        payload: Dict[str, Any] = {resource: items}
        if last_page is not None:
            payload["meta"] = {"pagination": {"page": page, "last_page": last_page}}
        return payload

    def pages_requested(self, resource: str) -> List[int]:
        return [page for res, page in self.calls if res == resource]


class FakeAggregator:
    def __init__(
        self,
        server_types: Optional[Dict[Optional[str], List[SelectableOption]]] = None,
        load_result: Optional[CatalogLoadResult] = None,
    ) -> None:
        self.server_types = server_types or {}
        self.load_result = load_result or CatalogLoadResult(
            catalog=ResourceCatalog(), empty_kinds=list(ResourceKind)
        )
        self.gates: Dict[Optional[str], asyncio.Event] = {}
        self.server_type_calls: List[Optional[str]] = []
        self.load_calls: List[Optional[str]] = []
        self.on_load = None
        self.load_gates: List[asyncio.Event] = []

    async def get_server_types(
        self, location: Optional[str] = None
    ) -> List[SelectableOption]:
        self.server_type_calls.append(location)
        gate = self.gates.get(location)
        if gate is not None:
            await gate.wait()
        return list(self.server_types.get(location, []))

    async def load_catalog(self, location: Optional[str] = None) -> CatalogLoadResult:
        self.load_calls.append(location)
        if self.on_load is not None:
            self.on_load()
        gate = self.load_gates.pop(0) if self.load_gates else None
        if gate is not None:
            await gate.wait()
        await asyncio.sleep(0)
        return self.load_result


@pytest.fixture
def page_transport():
    """Factory fixture: page_transport(pages, errors=None, last_page_override=None)."""
    return FakePageTransport


@pytest.fixture
def fake_aggregator():
    """Factory fixture: fake_aggregator(server_types=None, load_result=None)."""
    return FakeAggregator
