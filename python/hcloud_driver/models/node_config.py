"""
hcloud_driver/models/node_config.py

Typed node configuration plus the codec between it and the host's loosely
typed configuration record.

The host record uses camelCase keys, string ids, string lists and
"key=value" label strings. Decoding goes through ExternalNodeRecord, a
pydantic model that is the only place untyped host data is inspected.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from hcloud_driver.models.validator import validation_messages


class RecordField(str, Enum):
    server_type = "serverType"
    server_location = "serverLocation"
    image_id = "imageId"
    placement_group = "placementGroup"
    networks = "networks"
    firewalls = "firewalls"
    existing_key_id = "existingKeyId"
    use_private_network = "usePrivateNetwork"
    disable_public = "disablePublic"
    disable_public_ipv4 = "disablePublicIpv4"
    disable_public_ipv6 = "disablePublicIpv6"
    additional_user_data = "additionalUserData"
    user_data_from_file = "userDataFromFile"
    server_label = "serverLabel"


class NodeConfiguration(BaseModel):
    """The driver's internal, strongly typed view of one node.

    Attributes:
        location: Location name, e.g. 'fsn1'.
        server_type: Server type name, e.g. 'cx22'.
        image: Image id.
        placement_group: Optional placement group id.
        networks: Private network ids to attach.
        firewalls: Firewall ids to apply.
        ssh_key: Optional id of an existing SSH key.
        use_private_network: Reach the node through its private network.
        disable_public_network: Create the node without any public address.
        disable_ipv4: Create the node without a public IPv4 address.
        disable_ipv6: Create the node without a public IPv6 address.
        user_data: Additional cloud-init user data.
        labels: Server labels.
    """

    model_config = ConfigDict(validate_assignment=True)

    location: Optional[str] = None
    server_type: Optional[str] = None
    image: Optional[int] = None
    placement_group: Optional[int] = None
    networks: List[int] = Field(default_factory=list)
    firewalls: List[int] = Field(default_factory=list)
    ssh_key: Optional[int] = None
    use_private_network: bool = False
    disable_public_network: bool = False
    disable_ipv4: bool = False
    disable_ipv6: bool = False
    user_data: str = ""
    labels: Dict[str, str] = Field(default_factory=dict)


class DecodeFailure(BaseModel):
    """Returned instead of a NodeConfiguration when a host record can't be decoded."""

    errors: List[str]


# ----------------------------------------------------------------------
# Lenient field coercions used by ExternalNodeRecord
# ----------------------------------------------------------------------


def _blank_to_none(value: Any) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return value


def _parse_id(value: Any) -> Optional[int]:
    value = _blank_to_none(value)
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"expected a numeric id, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise ValueError(f"expected a numeric id, got {value!r}")


def _parse_flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return value is True


def _parse_labels(entries: List[Any]) -> Dict[str, str]:
    labels: Dict[str, str] = {}
    for entry in entries:
        text = str(entry)
        if not text:
            continue
        key, _, value = text.partition("=")
        labels[key] = value
    return labels


class ExternalNodeRecord(BaseModel):
    """Validated view of the host's configuration record."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    server_type: Optional[str] = Field(default=None, alias=RecordField.server_type.value)
    server_location: Optional[str] = Field(
        default=None, alias=RecordField.server_location.value
    )
    image_id: Optional[int] = Field(default=None, alias=RecordField.image_id.value)
    placement_group: Optional[int] = Field(
        default=None, alias=RecordField.placement_group.value
    )
    networks: List[int] = Field(default_factory=list, alias=RecordField.networks.value)
    firewalls: List[int] = Field(default_factory=list, alias=RecordField.firewalls.value)
    existing_key_id: Optional[int] = Field(
        default=None, alias=RecordField.existing_key_id.value
    )
    use_private_network: bool = Field(
        default=False, alias=RecordField.use_private_network.value
    )
    disable_public: bool = Field(default=False, alias=RecordField.disable_public.value)
    disable_public_ipv4: bool = Field(
        default=False, alias=RecordField.disable_public_ipv4.value
    )
    disable_public_ipv6: bool = Field(
        default=False, alias=RecordField.disable_public_ipv6.value
    )
    additional_user_data: str = Field(
        default="", alias=RecordField.additional_user_data.value
    )
    server_label: Dict[str, str] = Field(
        default_factory=dict, alias=RecordField.server_label.value
    )

    @field_validator("server_type", "server_location", mode="before")
    @classmethod
    def validate_name(cls, val: Any) -> Any:
        val = _blank_to_none(val)
        return None if val is None else str(val)

    @field_validator("image_id", "placement_group", "existing_key_id", mode="before")
    @classmethod
    def validate_id(cls, val: Any) -> Optional[int]:
        return _parse_id(val)

    @field_validator("networks", "firewalls", mode="before")
    @classmethod
    def validate_id_list(cls, val: Any) -> List[int]:
        if not isinstance(val, (list, tuple)):
            return []
        return [i for i in (_parse_id(v) for v in val) if i is not None]

    @field_validator(
        "use_private_network",
        "disable_public",
        "disable_public_ipv4",
        "disable_public_ipv6",
        mode="before",
    )
    @classmethod
    def validate_flag(cls, val: Any) -> bool:
        return _parse_flag(val)

    @field_validator("additional_user_data", mode="before")
    @classmethod
    def validate_user_data(cls, val: Any) -> str:
        return "" if val is None else str(val)

    @field_validator("server_label", mode="before")
    @classmethod
    def validate_labels(cls, val: Any) -> Dict[str, str]:
        if not isinstance(val, (list, tuple)):
            return {}
        return _parse_labels(list(val))

    def to_node_configuration(self) -> NodeConfiguration:
        return NodeConfiguration(
            location=self.server_location,
            server_type=self.server_type,
            image=self.image_id,
            placement_group=self.placement_group,
            networks=self.networks,
            firewalls=self.firewalls,
            ssh_key=self.existing_key_id,
            use_private_network=self.use_private_network,
            disable_public_network=self.disable_public,
            disable_ipv4=self.disable_public_ipv4,
            disable_ipv6=self.disable_public_ipv6,
            user_data=self.additional_user_data,
            labels=self.server_label,
        )


# ----------------------------------------------------------------------
# Codec
# ----------------------------------------------------------------------


def decode_external_record(raw: Any) -> Union[NodeConfiguration, DecodeFailure]:
    """
    Decode a host configuration record into a NodeConfiguration.

    Absent or blank optional values become unset, list fields default to
    empty, numeric-looking ids are parsed to ints and label strings are split
    once on '='. A record that is not a mapping, or an id that is present but
    not numeric, yields a DecodeFailure.
    """
    if not isinstance(raw, Mapping):
        return DecodeFailure(errors=[f"<root>: expected a mapping, got {type(raw).__name__}"])
    record = dict(raw)
    errors = validation_messages(record, ExternalNodeRecord)
    if errors:
        return DecodeFailure(errors=errors)
    return ExternalNodeRecord.model_validate(record).to_node_configuration()


def _id_to_str(value: Optional[int]) -> Optional[str]:
    return None if value is None else str(value)


def encode_node_configuration(config: NodeConfiguration) -> Dict[str, Any]:
    """
    Encode a NodeConfiguration as host record fields.

    `userDataFromFile` is always True. Disabling the public network
    supersedes the per-protocol flags, which are then encoded as False.
    """
    disable_public = config.disable_public_network
    return {
        RecordField.server_type.value: config.server_type,
        RecordField.server_location.value: config.location,
        RecordField.image_id.value: _id_to_str(config.image),
        RecordField.placement_group.value: _id_to_str(config.placement_group),
        RecordField.networks.value: [str(n) for n in config.networks],
        RecordField.firewalls.value: [str(f) for f in config.firewalls],
        RecordField.existing_key_id.value: _id_to_str(config.ssh_key),
        RecordField.use_private_network.value: config.use_private_network,
        RecordField.disable_public.value: disable_public,
        RecordField.disable_public_ipv4.value: (
            False if disable_public else config.disable_ipv4
        ),
        RecordField.disable_public_ipv6.value: (
            False if disable_public else config.disable_ipv6
        ),
        RecordField.additional_user_data.value: config.user_data,
        RecordField.user_data_from_file.value: True,
        RecordField.server_label.value: [f"{k}={v}" for k, v in config.labels.items()],
    }


# ----------------------------------------------------------------------
# Validation
# ----------------------------------------------------------------------

PROBLEM_MISSING_SERVER_TYPE = "missing-server-type"
PROBLEM_MISSING_IMAGE = "missing-image"
PROBLEM_MISSING_LOCATION = "missing-location"
PROBLEM_PUBLIC_DISABLED_WITHOUT_PRIVATE = "public-disabled-without-private-network"
PROBLEM_PRIVATE_WITHOUT_NETWORK = "private-network-without-network"


def validate_node_configuration(config: NodeConfiguration) -> List[str]:
    """
    Return the cross-field problems of a configuration; empty means valid.

    A node needs a server type, an image and a location. Public access can
    only be (partly) disabled when the node uses a private network, and using
    a private network requires at least one network.
    """
    problems: List[str] = []
    if not config.server_type:
        problems.append(PROBLEM_MISSING_SERVER_TYPE)
    if config.image is None:
        problems.append(PROBLEM_MISSING_IMAGE)
    if not config.location:
        problems.append(PROBLEM_MISSING_LOCATION)

    any_public_disabled = (
        config.disable_public_network or config.disable_ipv4 or config.disable_ipv6
    )
    if any_public_disabled and not config.use_private_network:
        problems.append(PROBLEM_PUBLIC_DISABLED_WITHOUT_PRIVATE)
    if config.use_private_network and not config.networks:
        problems.append(PROBLEM_PRIVATE_WITHOUT_NETWORK)
    return problems


__all__ = [
    "RecordField",
    "NodeConfiguration",
    "DecodeFailure",
    "ExternalNodeRecord",
    "decode_external_record",
    "encode_node_configuration",
    "validate_node_configuration",
]
