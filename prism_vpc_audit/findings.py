"""Data models for VPC compliance results."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal


@dataclass
class Finding:
    """A single policy violation raised for a VPC."""

    vpc_id: str
    region: str
    message: str


@dataclass
class InventoryItem:
    """Represents the compliance state of an audited VPC."""

    service: str
    resource_id: str
    status: Literal["COMPLIANT", "NON_COMPLIANT", "IGNORED"]
    details: str


__all__ = ["Finding", "InventoryItem"]
