"""Fetch and decode the PRISM VPC inventory."""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

import httpx

PRISM_VPCS_URL = "https://prism.gutools.co.uk/vpcs"


class InventoryError(RuntimeError):
    """Raised when the inventory cannot be retrieved or understood."""

    def __init__(self, context: str, cause: object) -> None:
        super().__init__(f"{context}: {cause}")
        self.context = context
        self.cause = cause


class InventoryFetchError(InventoryError):
    """The HTTP request, or reading its body, failed at the transport level."""


class InventoryDecodeError(InventoryError):
    """The response body is not a valid inventory document."""


_JSON_TYPE_NAMES = {
    dict: "object",
    list: "array",
    str: "string",
    int: "integer",
    bool: "boolean",
}


def _describe(value: Any) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return f"number {value!r}"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return "object"


def _get(document: Mapping[str, Any], key: str, kind: type, path: str) -> Any:
    """Return the value named *key* checked against *kind*, or ``None`` when absent.

    Names match case-insensitively and the last matching non-null entry wins.
    JSON ``null`` is treated the same as a missing key. Booleans are rejected
    where an integer is expected even though :class:`bool` subclasses
    :class:`int`.
    """

    folded = key.casefold()
    found = None
    for name, value in document.items():
        if value is None or name.casefold() != folded:
            continue
        if kind is int:
            valid = isinstance(value, int) and not isinstance(value, bool)
        else:
            valid = isinstance(value, kind)
        if not valid:
            raise InventoryDecodeError(
                "unable to unmarshal",
                f"cannot decode {_describe(value)} into {path}.{key} "
                f"(expected {_JSON_TYPE_NAMES[kind]})",
            )
        found = value
    return found


@dataclass(frozen=True)
class Subnet:
    """Snapshot of a single subnet as reported by PRISM."""

    availability_zone: str = ""
    available_ip_address_count: int = 0
    capacity_ip_address_count: int = 0
    cidr_block: str = ""
    owner_id: str = ""
    state: str = ""
    subnet_arn: str = ""
    subnet_id: str = ""
    is_public: bool = False

    @classmethod
    def from_dict(cls, document: Mapping[str, Any], path: str = "subnet") -> "Subnet":
        return cls(
            availability_zone=_get(document, "availabilityZone", str, path) or "",
            available_ip_address_count=_get(document, "availableIpAddressCount", int, path) or 0,
            capacity_ip_address_count=_get(document, "capacityIpAddressCount", int, path) or 0,
            cidr_block=_get(document, "cidrBlock", str, path) or "",
            owner_id=_get(document, "ownerId", str, path) or "",
            state=_get(document, "state", str, path) or "",
            subnet_arn=_get(document, "subnetArn", str, path) or "",
            subnet_id=_get(document, "subnetId", str, path) or "",
            is_public=_get(document, "isPublic", bool, path) or False,
        )


@dataclass(frozen=True)
class VPC:
    """Snapshot of a VPC and the subnets it owns."""

    vpc_id: str = ""
    account_id: str = ""
    state: str = ""
    is_default: bool = False
    subnets: Tuple[Subnet, ...] = ()
    tags: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}), hash=False)
    region: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.tags, MappingProxyType):
            object.__setattr__(self, "tags", MappingProxyType(dict(self.tags)))

    @classmethod
    def from_dict(cls, document: Mapping[str, Any], path: str = "vpc") -> "VPC":
        raw_subnets = _get(document, "subnets", list, path) or []
        subnets = []
        for index, raw_subnet in enumerate(raw_subnets):
            subnet_path = f"{path}.subnets[{index}]"
            if raw_subnet is None:
                subnets.append(Subnet())
                continue
            if not isinstance(raw_subnet, dict):
                raise InventoryDecodeError(
                    "unable to unmarshal",
                    f"cannot decode {_describe(raw_subnet)} into {subnet_path} (expected object)",
                )
            subnets.append(Subnet.from_dict(raw_subnet, subnet_path))

        raw_tags = _get(document, "tags", dict, path) or {}
        tags: Dict[str, str] = {}
        for key, value in raw_tags.items():
            if value is not None and not isinstance(value, str):
                raise InventoryDecodeError(
                    "unable to unmarshal",
                    f"cannot decode {_describe(value)} into {path}.tags[{key!r}] (expected string)",
                )
            tags[key] = value or ""

        meta = _get(document, "meta", dict, path) or {}
        origin = _get(meta, "origin", dict, f"{path}.meta") or {}
        region = _get(origin, "region", str, f"{path}.meta.origin") or ""

        return cls(
            vpc_id=_get(document, "vpcId", str, path) or "",
            account_id=_get(document, "accountId", str, path) or "",
            state=_get(document, "state", str, path) or "",
            is_default=_get(document, "default", bool, path) or False,
            subnets=tuple(subnets),
            tags=MappingProxyType(tags),
            region=region,
        )

    @property
    def public_subnets(self) -> Tuple[Subnet, ...]:
        return tuple(subnet for subnet in self.subnets if subnet.is_public)

    @property
    def private_subnets(self) -> Tuple[Subnet, ...]:
        return tuple(subnet for subnet in self.subnets if not subnet.is_public)


@dataclass(frozen=True)
class InventoryResponse:
    """Top-level ``{"data": {"vpcs": [...]}}`` envelope returned by PRISM."""

    vpcs: Tuple[VPC, ...] = ()

    @classmethod
    def from_dict(cls, document: Mapping[str, Any]) -> "InventoryResponse":
        data = _get(document, "data", dict, "response") or {}
        raw_vpcs = _get(data, "vpcs", list, "response.data") or []
        vpcs = []
        for index, raw_vpc in enumerate(raw_vpcs):
            vpc_path = f"response.data.vpcs[{index}]"
            if raw_vpc is None:
                vpcs.append(VPC())
                continue
            if not isinstance(raw_vpc, dict):
                raise InventoryDecodeError(
                    "unable to unmarshal",
                    f"cannot decode {_describe(raw_vpc)} into {vpc_path} (expected object)",
                )
            vpcs.append(VPC.from_dict(raw_vpc, vpc_path))
        return cls(vpcs=tuple(vpcs))


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON literal {name!r}")


def decode_inventory(payload: bytes) -> InventoryResponse:
    """Parse *payload* as a PRISM inventory document.

    Unknown fields are ignored and missing ones fall back to empty values. A
    malformed document, or one with a field of the wrong JSON type, raises
    :class:`InventoryDecodeError`. Invalid UTF-8 inside strings becomes
    U+FFFD; a leading byte order mark and the ``NaN``/``Infinity`` literals are
    rejected.
    """

    text = payload.decode("utf-8", "replace")
    if text.startswith("\ufeff"):
        raise InventoryDecodeError("unable to unmarshal", "unexpected byte order mark")

    try:
        document = json.loads(text, parse_constant=_reject_constant)
    except ValueError as exc:
        raise InventoryDecodeError("unable to unmarshal", exc) from exc

    if document is None:
        return InventoryResponse()
    if not isinstance(document, dict):
        raise InventoryDecodeError(
            "unable to unmarshal",
            f"cannot decode {_describe(document)} into response (expected object)",
        )
    return InventoryResponse.from_dict(document)


def fetch_inventory(
    url: str = PRISM_VPCS_URL, *, client: Optional[httpx.Client] = None
) -> bytes:
    """GET *url* and return the whole response body.

    Only transport failures are treated as errors; the status code is not
    inspected. When *client* is omitted a client without a timeout is created
    and closed before returning.
    """

    owns_client = client is None
    http = client if client is not None else httpx.Client(timeout=None)
    try:
        request = http.build_request("GET", url)
        try:
            response = http.send(request, stream=True, follow_redirects=True)
        except httpx.HTTPError as exc:
            raise InventoryFetchError("GET from PRISM failed", exc) from exc

        try:
            return response.read()
        except httpx.HTTPError as exc:
            raise InventoryFetchError("unable to read prism response body", exc) from exc
        finally:
            response.close()
    finally:
        if owns_client:
            http.close()


def load_inventory(
    url: str = PRISM_VPCS_URL, *, client: Optional[httpx.Client] = None
) -> InventoryResponse:
    """Fetch and decode the inventory in one step."""

    return decode_inventory(fetch_inventory(url, client=client))


__all__ = [
    "InventoryDecodeError",
    "InventoryError",
    "InventoryFetchError",
    "InventoryResponse",
    "PRISM_VPCS_URL",
    "Subnet",
    "VPC",
    "decode_inventory",
    "fetch_inventory",
    "load_inventory",
]
