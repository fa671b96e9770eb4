"""Audit PRISM VPC inventory against the standard subnet layout."""

from __future__ import annotations

from .compliance import CANONICAL_REGION, check_compliance, filter_by_account
from .core import AuditResults, collect_audit_results, print_report
from .findings import Finding, InventoryItem
from .inventory import (
    InventoryDecodeError,
    InventoryError,
    InventoryFetchError,
    InventoryResponse,
    Subnet,
    VPC,
    decode_inventory,
    fetch_inventory,
    load_inventory,
)

__all__ = [
    "AuditResults",
    "CANONICAL_REGION",
    "Finding",
    "InventoryDecodeError",
    "InventoryError",
    "InventoryFetchError",
    "InventoryItem",
    "InventoryResponse",
    "Subnet",
    "VPC",
    "check_compliance",
    "collect_audit_results",
    "decode_inventory",
    "fetch_inventory",
    "filter_by_account",
    "load_inventory",
    "print_report",
]
