"""Network topology policy for account VPCs."""

from __future__ import annotations

from typing import Iterable, List

from .inventory import VPC

# Policy is only enforced in this region; VPCs elsewhere are reported as
# ignored rather than non-compliant.
CANONICAL_REGION = "eu-west-1"

EXPECTED_PUBLIC_SUBNETS = 3
EXPECTED_PRIVATE_SUBNETS = 3

DEFAULT_VPC_VIOLATION = "is Default VPC"


def is_canonical_region(vpc: VPC) -> bool:
    """Return ``True`` when *vpc* originates from :data:`CANONICAL_REGION`."""

    return vpc.region == CANONICAL_REGION


def filter_by_account(vpcs: Iterable[VPC], account_id: str) -> List[VPC]:
    """Return the VPCs owned by *account_id*, preserving their order."""

    return [vpc for vpc in vpcs if vpc.account_id == account_id]


def non_standard_region_vpcs(vpcs: Iterable[VPC]) -> List[VPC]:
    """Return the VPCs excluded from policy enforcement because of their region."""

    return [vpc for vpc in vpcs if not is_canonical_region(vpc)]


def check_compliance(vpc: VPC) -> List[str]:
    """Return the reasons *vpc* violates the subnet layout policy.

    A VPC outside :data:`CANONICAL_REGION` yields no violations. A default VPC
    yields a single violation and its subnets are not inspected. Otherwise the
    public and private subnet counts are checked independently.
    """

    violations: List[str] = []

    if not is_canonical_region(vpc):
        return violations

    if vpc.is_default:
        violations.append(DEFAULT_VPC_VIOLATION)
        return violations

    public_count = len(vpc.public_subnets)
    private_count = len(vpc.private_subnets)

    if public_count != EXPECTED_PUBLIC_SUBNETS:
        violations.append(
            f"expected {EXPECTED_PUBLIC_SUBNETS} public subnets, found {public_count}"
        )

    if private_count != EXPECTED_PRIVATE_SUBNETS:
        violations.append(
            f"expected {EXPECTED_PRIVATE_SUBNETS} private subnets, found {private_count}"
        )

    return violations


__all__ = [
    "CANONICAL_REGION",
    "DEFAULT_VPC_VIOLATION",
    "EXPECTED_PRIVATE_SUBNETS",
    "EXPECTED_PUBLIC_SUBNETS",
    "check_compliance",
    "filter_by_account",
    "is_canonical_region",
    "non_standard_region_vpcs",
]
