"""Tests for fetching and decoding the PRISM inventory."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Iterator

import httpx
import pytest


PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


from prism_vpc_audit.inventory import (
    PRISM_VPCS_URL,
    InventoryDecodeError,
    InventoryFetchError,
    Subnet,
    VPC,
    decode_inventory,
    fetch_inventory,
    load_inventory,
)


SAMPLE_DOCUMENT = {
    "data": {
        "vpcs": [
            {
                "vpcId": "vpc-1",
                "accountId": "111",
                "state": "available",
                "default": False,
                "subnets": [
                    {
                        "availabilityZone": "eu-west-1a",
                        "availableIpAddressCount": 250,
                        "capacityIpAddressCount": 256,
                        "cidrBlock": "10.0.0.0/24",
                        "ownerId": "111",
                        "state": "available",
                        "subnetArn": "arn:aws:ec2:eu-west-1:111:subnet/subnet-1",
                        "subnetId": "subnet-1",
                        "isPublic": True,
                    }
                ],
                "tags": {"Name": "main"},
                "meta": {"origin": {"region": "eu-west-1", "accountName": "ignored"}},
                "somethingNew": [1, 2, 3],
            }
        ]
    },
    "lastUpdated": "2024-01-01T00:00:00Z",
}


def _client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


def test_decode_inventory_maps_all_fields() -> None:
    """Every documented field lands on the model and unknown ones are ignored."""

    response = decode_inventory(json.dumps(SAMPLE_DOCUMENT).encode("utf-8"))

    assert len(response.vpcs) == 1
    vpc = response.vpcs[0]
    assert vpc.vpc_id == "vpc-1"
    assert vpc.account_id == "111"
    assert vpc.state == "available"
    assert vpc.is_default is False
    assert vpc.tags == {"Name": "main"}
    assert vpc.region == "eu-west-1"
    assert vpc.subnets == (
        Subnet(
            availability_zone="eu-west-1a",
            available_ip_address_count=250,
            capacity_ip_address_count=256,
            cidr_block="10.0.0.0/24",
            owner_id="111",
            state="available",
            subnet_arn="arn:aws:ec2:eu-west-1:111:subnet/subnet-1",
            subnet_id="subnet-1",
            is_public=True,
        ),
    )


def test_decode_inventory_fills_missing_fields_with_empty_values() -> None:
    """Missing and null fields fall back to zero values."""

    payload = b'{"data": {"vpcs": [{"vpcId": "vpc-9", "tags": null, "subnets": [{}]}, {}]}}'

    response = decode_inventory(payload)

    assert response.vpcs[0] == VPC(vpc_id="vpc-9", subnets=(Subnet(),))
    assert response.vpcs[1] == VPC()
    assert response.vpcs[1].region == ""


def test_decode_inventory_handles_empty_envelopes() -> None:
    """Documents without VPCs decode to an empty inventory."""

    assert decode_inventory(b"{}").vpcs == ()
    assert decode_inventory(b'{"data": null}').vpcs == ()
    assert decode_inventory(b"null").vpcs == ()


@pytest.mark.parametrize(
    "payload",
    [
        b"",
        b"{not json",
        b'{"data": {"vpcs": [}}',
        b"[]",
        b'{"data": {"vpcs": "vpc-1"}}',
        b'{"data": {"vpcs": [{"default": "yes"}]}}',
        b'{"data": {"vpcs": [{"subnets": [{"availableIpAddressCount": 1.5}]}]}}',
        b'{"data": {"vpcs": [{"subnets": [{"capacityIpAddressCount": true}]}]}}',
        b'{"data": {"vpcs": [{"meta": {"origin": {"region": 1}}}]}}',
        b'{"data": {"vpcs": [{"tags": {"Name": 1}}]}}',
        b'{"data": {"vpcs": []}, "x": NaN}',
        b'{"data": {"vpcs": []}, "score": Infinity}',
        b'{"data": {"vpcs": [{"subnets": [{"availableIpAddressCount": -Infinity}]}]}}',
        b'\xef\xbb\xbf{"data": {"vpcs": []}}',
        b'{"data": {"vpcs": [{"vpcId": "a", "VpcId": 7}]}}',
    ],
)
def test_decode_inventory_rejects_invalid_documents(payload: bytes) -> None:
    """Malformed JSON and mistyped fields are decode errors."""

    with pytest.raises(InventoryDecodeError) as excinfo:
        decode_inventory(payload)

    assert str(excinfo.value).startswith("unable to unmarshal: ")


def test_decode_inventory_replaces_invalid_utf8_in_strings() -> None:
    """Bad bytes inside string values become U+FFFD instead of failing."""

    response = decode_inventory(b'{"data": {"vpcs": [{"vpcId": "vpc-\xff1"}]}}')

    assert response.vpcs[0].vpc_id == "vpc-\ufffd1"


def test_decode_inventory_matches_field_names_ignoring_case() -> None:
    """Field names match case-insensitively and the last non-null match wins."""

    payload = (
        b'{"DATA": {"Vpcs": [{"VpcId": "vpc-1", "ACCOUNTID": "111", '
        b'"state": "pending", "State": "available", "Default": null, "default": true, '
        b'"META": {"Origin": {"REGION": "eu-west-1"}}, "Tags": {"name": "x"}}]}}'
    )

    vpc = decode_inventory(payload).vpcs[0]

    assert vpc.vpc_id == "vpc-1"
    assert vpc.account_id == "111"
    assert vpc.state == "available"
    assert vpc.is_default is True
    assert vpc.region == "eu-west-1"
    assert dict(vpc.tags) == {"name": "x"}


def test_vpc_snapshot_is_read_only_and_hashable() -> None:
    """Decoded tags cannot be modified and VPCs can be used as set members."""

    payload = b'{"data": {"vpcs": [{"vpcId": "vpc-1", "tags": {"Name": "main"}}]}}'
    vpc = decode_inventory(payload).vpcs[0]

    with pytest.raises(TypeError):
        vpc.tags["Name"] = "other"  # type: ignore[index]
    assert hash(vpc) == hash(VPC(vpc_id="vpc-1", tags={"Name": "main"}))
    assert vpc == VPC(vpc_id="vpc-1", tags={"Name": "main"})
    assert len({vpc, VPC(vpc_id="vpc-1", tags={"Name": "main"})}) == 1


def test_fetch_inventory_issues_plain_get() -> None:
    """The fixed URL is requested with no query string or credentials."""

    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, content=b'{"data": {"vpcs": []}}')

    with _client(handler) as client:
        body = fetch_inventory(client=client)

    assert body == b'{"data": {"vpcs": []}}'
    assert len(seen) == 1
    assert seen[0].method == "GET"
    assert str(seen[0].url) == PRISM_VPCS_URL
    assert "authorization" not in seen[0].headers


def test_fetch_inventory_does_not_check_status_codes() -> None:
    """Error statuses still hand their body to the decoder."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, content=b'{"data": {"vpcs": [{"vpcId": "vpc-1"}]}}')

    with _client(handler) as client:
        response = load_inventory(client=client)

    assert [vpc.vpc_id for vpc in response.vpcs] == ["vpc-1"]


def test_fetch_inventory_error_page_becomes_decode_error() -> None:
    """A non-JSON error page surfaces as a decode failure."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, content=b"<html>Not Found</html>")

    with _client(handler) as client, pytest.raises(InventoryDecodeError):
        load_inventory(client=client)


def test_fetch_inventory_wraps_transport_errors() -> None:
    """Connection failures are fatal fetch errors with context."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with _client(handler) as client, pytest.raises(InventoryFetchError) as excinfo:
        fetch_inventory(client=client)

    assert str(excinfo.value) == "GET from PRISM failed: connection refused"
    assert isinstance(excinfo.value.cause, httpx.ConnectError)


class _BrokenStream(httpx.SyncByteStream):
    def __iter__(self) -> Iterator[bytes]:
        yield b'{"data": '
        raise httpx.ReadError("connection reset")


def test_fetch_inventory_wraps_body_read_errors() -> None:
    """Failures while reading the body are reported separately."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, stream=_BrokenStream())

    with _client(handler) as client, pytest.raises(InventoryFetchError) as excinfo:
        fetch_inventory(client=client)

    assert excinfo.value.context == "unable to read prism response body"
