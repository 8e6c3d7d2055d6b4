"""
hcloud_driver/services/aggregator.py

ResourceAggregator: pulls complete, paginated inventory listings through a
page transport and turns them into SelectableOption lists.

Every public fetch returns an empty list on failure. Callers only learn that
no options are available; the reason is logged.
"""

from __future__ import annotations

import asyncio
import logging
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    List,
    Optional,
    Protocol,
    Type,
    TypeVar,
)

import aiohttp
from pydantic import BaseModel

from hcloud_driver.client.hcloud_client import HCloudAuthError, HCloudError
from hcloud_driver.models.hcloud import (
    Firewall,
    Image,
    Location,
    Meta,
    Network,
    PlacementGroup,
    ServerType,
    SshKey,
)
from hcloud_driver.models.options import (
    DEDICATED_HEADER_VALUE,
    SHARED_HEADER_VALUE,
    ResourceCatalog,
    ResourceKind,
    SelectableOption,
    group_header,
)
from hcloud_driver.models.validator import validate_type

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

COUNTRY_NAMES: Dict[str, str] = {
    "DE": "Germany",
    "FI": "Finland",
    "US": "USA",
    "SG": "Singapore",
    "AU": "Australia",
}

DEDICATED_HEADER_LABEL = "━━━ DEDICATED CPU SERVERS ━━━"
SHARED_HEADER_LABEL = "━━━ SHARED CPU SERVERS ━━━"

FETCH_ERRORS = (HCloudError, aiohttp.ClientError, asyncio.TimeoutError, ValueError)


class PageTransport(Protocol):
    """Anything that can return one raw JSON page of a resource listing."""

    async def get_page(self, resource: str, page: int) -> Dict[str, Any]: ...


class CatalogLoadResult(BaseModel):
    """Outcome of a full catalog load."""

    catalog: ResourceCatalog
    empty_kinds: List[ResourceKind]

    @property
    def all_failed(self) -> bool:
        return len(self.empty_kinds) == len(ResourceKind)

    @property
    def has_locations(self) -> bool:
        return ResourceKind.location not in self.empty_kinds


def country_name(country_code: str) -> str:
    return COUNTRY_NAMES.get(country_code, country_code)


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


# ----------------------------------------------------------------------
# Per-kind transforms
# ----------------------------------------------------------------------


def location_options(locations: List[Location]) -> List[SelectableOption]:
    ordered = sorted(locations, key=lambda loc: (loc.network_zone, loc.name))
    return [
        SelectableOption(
            value=loc.name,
            label=f"{loc.name.upper()} - {loc.city}, {country_name(loc.country)}",
            city=loc.city,
            country=country_name(loc.country),
            network_zone=loc.network_zone,
        )
        for loc in ordered
    ]


def _server_type_option(
    server_type: ServerType, location: Optional[str]
) -> SelectableOption:
    price_label = ""
    if location:
        price = server_type.price_in(location)
        if price is not None:
            price_label = f"€{price.price_monthly.gross:.2f}/mo, "
    return SelectableOption(
        value=server_type.name,
        label=(
            f"{server_type.name} ({price_label}{server_type.architecture}, "
            f"{server_type.cores} vCPU, {_format_number(server_type.memory)} GB RAM, "
            f"{server_type.disk} GB SSD)"
        ),
    )


def server_type_options(
    server_types: List[ServerType], location: Optional[str] = None
) -> List[SelectableOption]:
    """
    Drop deprecated types (and, with a location, types not sold there), then
    list dedicated-CPU types before shared-CPU types, each sorted by name.

    The dedicated header is emitted whenever dedicated types exist. The shared
    header is only emitted when dedicated types precede it, so a shared-only
    list carries no header at all.
    """
    available = [st for st in server_types if not st.deprecated]
    if location:
        available = [st for st in available if st.price_in(location) is not None]

    dedicated = sorted(
        (st for st in available if st.cpu_type == "dedicated"), key=lambda st: st.name
    )
    shared = sorted(
        (st for st in available if st.cpu_type == "shared"), key=lambda st: st.name
    )

    result: List[SelectableOption] = []
    if dedicated:
        result.append(group_header(DEDICATED_HEADER_LABEL, DEDICATED_HEADER_VALUE))
        result.extend(_server_type_option(st, location) for st in dedicated)
    if shared:
        if dedicated:
            result.append(group_header(SHARED_HEADER_LABEL, SHARED_HEADER_VALUE))
        result.extend(_server_type_option(st, location) for st in shared)
    return result


def image_options(images: List[Image]) -> List[SelectableOption]:
    ordered = sorted(images, key=lambda img: img.name or "")
    return [
        SelectableOption(
            value=img.id,
            label=f"{img.name or ''} ({img.architecture}) - {img.description}",
        )
        for img in ordered
    ]


def network_options(networks: List[Network]) -> List[SelectableOption]:
    return [
        SelectableOption(value=net.id, label=f"{net.name} ({net.ip_range})")
        for net in networks
    ]


def named_options(items: List[Any]) -> List[SelectableOption]:
    """Options labelled by bare name, in server order (firewalls, keys, groups)."""
    return [SelectableOption(value=item.id, label=item.name) for item in items]


# ----------------------------------------------------------------------
# Aggregator
# ----------------------------------------------------------------------


class ResourceAggregator:
    """Builds option lists for every inventory kind from a page transport.

    Args:
        transport: An AsyncHCloudClient or any object implementing get_page.
        credential_id: Opaque credential reference, used for diagnostics only.
    """

    def __init__(self, transport: PageTransport, credential_id: str = "") -> None:
        self._transport = transport
        self._credential_id = credential_id

    async def fetch_all(self, resource: str, model: Type[T]) -> List[T]:
        """
        Request page 1, 2, ... of `resource` until a page comes back empty or
        the next page number exceeds meta.pagination.last_page, then validate
        the accumulated items against `model`.

        The item array is read from the key named like the resource, e.g.
        "server_types" for /server_types.

        Raises:
            HCloudError, aiohttp.ClientError, asyncio.TimeoutError: transport failures.
            ValueError: If a page or an item does not validate.
        """
        raw_items: List[Any] = []
        page = 1
        while True:
            payload = await self._transport.get_page(resource, page)
            page += 1
            page_items = payload.get(resource) or []
            if not isinstance(page_items, list):
                raise ValueError(f"'{resource}' in page {page - 1} is not a list")
            raw_items.extend(page_items)

            meta = validate_type(payload.get("meta") or {}, Meta)
            last_page = meta.pagination.last_page if meta.pagination else None
            if not page_items or last_page is None or page > last_page:
                break

        logger.debug("Fetched %d %s over %d page(s)", len(raw_items), resource, page - 1)
        return validate_type(raw_items, List[model])  # type: ignore[valid-type]

    async def _safely(
        self,
        kind: ResourceKind,
        build: Callable[[], Awaitable[List[SelectableOption]]],
    ) -> List[SelectableOption]:
        try:
            return await build()
        except HCloudAuthError as ex:
            logger.error(
                "Authentication rejected while fetching %s (credential %s): %s",
                kind.value,
                self._credential_id or "<unset>",
                ex,
            )
        except FETCH_ERRORS as ex:
            logger.warning("Failed to fetch %s: %s", kind.value, ex)
        return []

    async def get_locations(self) -> List[SelectableOption]:
        async def build() -> List[SelectableOption]:
            return location_options(await self.fetch_all("locations", Location))

        return await self._safely(ResourceKind.location, build)

    async def get_server_types(
        self, location: Optional[str] = None
    ) -> List[SelectableOption]:
        """Server types, optionally restricted to (and priced for) one location."""

        async def build() -> List[SelectableOption]:
            items = await self.fetch_all("server_types", ServerType)
            return server_type_options(items, location)

        return await self._safely(ResourceKind.server_type, build)

    async def get_images(self) -> List[SelectableOption]:
        async def build() -> List[SelectableOption]:
            return image_options(await self.fetch_all("images", Image))

        return await self._safely(ResourceKind.image, build)

    async def get_placement_groups(self) -> List[SelectableOption]:
        async def build() -> List[SelectableOption]:
            return named_options(
                await self.fetch_all("placement_groups", PlacementGroup)
            )

        return await self._safely(ResourceKind.placement_group, build)

    async def get_networks(self) -> List[SelectableOption]:
        async def build() -> List[SelectableOption]:
            return network_options(await self.fetch_all("networks", Network))

        return await self._safely(ResourceKind.network, build)

    async def get_firewalls(self) -> List[SelectableOption]:
        async def build() -> List[SelectableOption]:
            return named_options(await self.fetch_all("firewalls", Firewall))

        return await self._safely(ResourceKind.firewall, build)

    async def get_ssh_keys(self) -> List[SelectableOption]:
        async def build() -> List[SelectableOption]:
            return named_options(await self.fetch_all("ssh_keys", SshKey))

        return await self._safely(ResourceKind.ssh_key, build)

    async def fetch(
        self, kind: ResourceKind, location: Optional[str] = None
    ) -> List[SelectableOption]:
        """Dispatch to the per-kind fetch; `location` only affects server types."""
        if kind is ResourceKind.server_type:
            return await self.get_server_types(location)
        fetchers: Dict[ResourceKind, Callable[[], Awaitable[List[SelectableOption]]]] = {
            ResourceKind.location: self.get_locations,
            ResourceKind.image: self.get_images,
            ResourceKind.network: self.get_networks,
            ResourceKind.firewall: self.get_firewalls,
            ResourceKind.placement_group: self.get_placement_groups,
            ResourceKind.ssh_key: self.get_ssh_keys,
        }
        return await fetchers[kind]()

    async def load_catalog(self, location: Optional[str] = None) -> CatalogLoadResult:
        """
        Fetch every kind concurrently and build one catalog once all have
        settled. A failing kind leaves its entry empty without affecting others.
        """
        kinds = list(ResourceKind)
        results = await asyncio.gather(
            *(self.fetch(kind, location) for kind in kinds), return_exceptions=True
        )
        entries: Dict[ResourceKind, List[SelectableOption]] = {}
        for kind, result in zip(kinds, results):
            if isinstance(result, BaseException):
                logger.warning("Unexpected failure loading %s: %r", kind.value, result)
                entries[kind] = []
            else:
                entries[kind] = result
        catalog = ResourceCatalog(entries=entries)
        return CatalogLoadResult(catalog=catalog, empty_kinds=catalog.empty_kinds())


__all__ = [
    "COUNTRY_NAMES",
    "PageTransport",
    "CatalogLoadResult",
    "ResourceAggregator",
    "country_name",
    "location_options",
    "server_type_options",
    "image_options",
    "network_options",
    "named_options",
]
