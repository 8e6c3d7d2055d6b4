"""
hcloud_driver/models/options.py

The selectable-option model shared by every resource kind, and the
ResourceCatalog that groups option lists by kind.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

OptionValue = Union[int, str]

GROUP_KIND = "group"
DEDICATED_HEADER_VALUE = "dedicated-header"
SHARED_HEADER_VALUE = "shared-header"


class ResourceKind(str, Enum):
    location = "location"
    server_type = "server_type"
    image = "image"
    network = "network"
    firewall = "firewall"
    placement_group = "placement_group"
    ssh_key = "ssh_key"


class SelectableOption(BaseModel):
    """One inventory entry offered to the user.

    Attributes:
        value: The underlying id (numeric for images, networks, etc., a name
            for locations and server types).
        label: Display text.
        disabled: True for entries that can be rendered but never chosen.
        kind: Group tag; "group" marks a header separating option classes.
        city: Location city (locations only).
        country: Resolved country name (locations only).
        network_zone: Location network zone (locations only).
    """

    model_config = ConfigDict(frozen=True)

    value: OptionValue
    label: str
    disabled: bool = False
    kind: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    network_zone: Optional[str] = None


def group_header(label: str, value: str) -> SelectableOption:
    """Builds a non-selectable separator option."""
    return SelectableOption(value=value, label=label, disabled=True, kind=GROUP_KIND)


def selectable_values(options: List[SelectableOption]) -> List[OptionValue]:
    """Values of every option a user could actually pick."""
    return [opt.value for opt in options if not opt.disabled]


class ResourceCatalog(BaseModel):
    """Option lists for every resource kind.

    A catalog is never edited in place; use `with_options` to obtain a new
    catalog with one kind replaced.
    """

    model_config = ConfigDict(frozen=True)

    entries: Dict[ResourceKind, List[SelectableOption]] = Field(
        default_factory=lambda: {kind: [] for kind in ResourceKind}
    )

    def options(self, kind: ResourceKind) -> List[SelectableOption]:
        return list(self.entries.get(kind, []))

    def with_options(
        self, kind: ResourceKind, options: List[SelectableOption]
    ) -> ResourceCatalog:
        updated = dict(self.entries)
        updated[kind] = list(options)
        return ResourceCatalog(entries=updated)

    def empty_kinds(self) -> List[ResourceKind]:
        return [kind for kind in ResourceKind if not self.entries.get(kind)]


__all__ = [
    "OptionValue",
    "GROUP_KIND",
    "DEDICATED_HEADER_VALUE",
    "SHARED_HEADER_VALUE",
    "ResourceKind",
    "SelectableOption",
    "group_header",
    "selectable_values",
    "ResourceCatalog",
]
