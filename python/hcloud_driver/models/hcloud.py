"""
filename: hcloud_driver/models/hcloud.py

Pydantic models for the subset of Hetzner Cloud API resources the driver reads.
Unknown fields are ignored so newer API responses still validate.
"""

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class HCloudModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class Pagination(HCloudModel):
    page: int = 1
    last_page: Optional[int] = None


class Meta(HCloudModel):
    pagination: Optional[Pagination] = None


class Location(HCloudModel):
    name: str
    city: str = ""
    country: str = ""
    network_zone: str = ""


class Price(HCloudModel):
    gross: float


class ServerTypePrice(HCloudModel):
    """Per-location price entry of a server type."""

    location: str
    price_monthly: Price


class ServerType(HCloudModel):
    """A server (instance) type as returned by /server_types.

    Attributes:
        name: Type name, e.g. 'cx22'.
        deprecated: Deprecated types are never offered.
        cpu_type: 'shared' or 'dedicated'; other classes are never offered.
        prices: One entry per location the type can be ordered in.
    """

    name: str
    deprecated: Optional[bool] = False
    architecture: str = ""
    cores: int
    memory: float
    disk: int
    cpu_type: str
    prices: List[ServerTypePrice] = Field(default_factory=list)

    def price_in(self, location: str) -> Optional[ServerTypePrice]:
        return next((p for p in self.prices if p.location == location), None)


class Image(HCloudModel):
    id: int
    name: Optional[str] = None
    architecture: str = ""
    description: str = ""


class Network(HCloudModel):
    id: int
    name: str
    ip_range: str = ""


class Firewall(HCloudModel):
    id: int
    name: str


class PlacementGroup(HCloudModel):
    id: int
    name: str


class SshKey(HCloudModel):
    id: int
    name: str


__all__ = [
    "Pagination",
    "Meta",
    "Location",
    "ServerTypePrice",
    "ServerType",
    "Image",
    "Network",
    "Firewall",
    "PlacementGroup",
    "SshKey",
]
