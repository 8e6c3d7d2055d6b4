"""
Tests for the configuration record codec and cross-field validation.
"""

import pytest

from hcloud_driver.models.node_config import (
    PROBLEM_MISSING_IMAGE,
    PROBLEM_MISSING_LOCATION,
    PROBLEM_MISSING_SERVER_TYPE,
    PROBLEM_PRIVATE_WITHOUT_NETWORK,
    PROBLEM_PUBLIC_DISABLED_WITHOUT_PRIVATE,
    DecodeFailure,
    NodeConfiguration,
    decode_external_record,
    encode_node_configuration,
    validate_node_configuration,
)


def _valid_config(**overrides) -> NodeConfiguration:
    values = dict(
        location="fsn1",
        server_type="cx22",
        image=114690387,
        placement_group=42,
        networks=[10, 11],
        firewalls=[7],
        ssh_key=99,
        use_private_network=True,
        disable_public_network=False,
        disable_ipv4=True,
        disable_ipv6=False,
        user_data="#cloud-config\npackages: [htop]\n",
        labels={"env": "prod", "team": "platform"},
    )
    values.update(overrides)
    return NodeConfiguration(**values)


class TestDecode:
    def test_parses_string_ids_and_labels(self):
        decoded = decode_external_record(
            {
                "serverType": "cx22",
                "serverLocation": "nbg1",
                "imageId": "67794396",
                "placementGroup": "",
                "networks": ["10", "11"],
                "firewalls": ["3"],
                "existingKeyId": 5,
                "usePrivateNetwork": "true",
                "serverLabel": ["env=prod", "expr=a=b", "bare"],
                "additionalUserData": None,
            }
        )

        assert isinstance(decoded, NodeConfiguration)
        assert decoded.location == "nbg1"
        assert decoded.image == 67794396
        assert decoded.placement_group is None
        assert decoded.networks == [10, 11]
        assert decoded.firewalls == [3]
        assert decoded.ssh_key == 5
        assert decoded.use_private_network is True
        assert decoded.user_data == ""
        assert decoded.labels == {"env": "prod", "expr": "a=b", "bare": ""}

    def test_absent_fields_are_unset_and_lists_default_empty(self):
        decoded = decode_external_record({"networks": "not-a-list", "serverLabel": None})

        assert decoded == NodeConfiguration()

    def test_non_mapping_is_a_decode_failure(self):
        decoded = decode_external_record(["serverType", "cx22"])

        assert isinstance(decoded, DecodeFailure)
        assert decoded.errors

    def test_non_numeric_id_is_a_decode_failure(self):
        decoded = decode_external_record({"imageId": "ubuntu-24.04"})

        assert isinstance(decoded, DecodeFailure)
        assert any("imageId" in err for err in decoded.errors)


class TestEncode:
    def test_round_trip(self):
        config = _valid_config()
        record = encode_node_configuration(config)

        assert record["userDataFromFile"] is True
        assert decode_external_record(record) == config

    def test_round_trip_with_unset_optionals(self):
        config = _valid_config(placement_group=None, ssh_key=None, labels={})
        record = encode_node_configuration(config)

        assert record["placementGroup"] is None
        assert record["existingKeyId"] is None
        assert decode_external_record(record) == config

    def test_user_data_from_file_always_true(self):
        record = encode_node_configuration(_valid_config())
        record["userDataFromFile"] = False

        record = encode_node_configuration(decode_external_record(record))
        assert record["userDataFromFile"] is True

    def test_string_encodings(self):
        record = encode_node_configuration(_valid_config())

        assert record["imageId"] == "114690387"
        assert record["networks"] == ["10", "11"]
        assert record["firewalls"] == ["7"]
        assert record["serverLabel"] == ["env=prod", "team=platform"]

    def test_disable_public_supersedes_protocol_flags(self):
        config = _valid_config(
            disable_public_network=True, disable_ipv4=True, disable_ipv6=True
        )
        record = encode_node_configuration(config)

        assert record["disablePublic"] is True
        assert record["disablePublicIpv4"] is False
        assert record["disablePublicIpv6"] is False


class TestValidation:
    def test_missing_required_fields(self):
        problems = validate_node_configuration(NodeConfiguration())

        assert problems == [
            PROBLEM_MISSING_SERVER_TYPE,
            PROBLEM_MISSING_IMAGE,
            PROBLEM_MISSING_LOCATION,
        ]

    @pytest.mark.parametrize(
        "flag", ["disable_public_network", "disable_ipv4", "disable_ipv6"]
    )
    def test_disabling_public_access_requires_private_network(self, flag):
        config = _valid_config(use_private_network=False, disable_ipv4=False)
        config = config.model_copy(update={flag: True})

        assert validate_node_configuration(config) == [
            PROBLEM_PUBLIC_DISABLED_WITHOUT_PRIVATE
        ]

    def test_private_network_requires_a_network(self):
        config = _valid_config(networks=[])

        assert validate_node_configuration(config) == [PROBLEM_PRIVATE_WITHOUT_NETWORK]

    def test_valid_configuration(self):
        assert validate_node_configuration(_valid_config()) == []
