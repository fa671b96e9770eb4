"""Core orchestration utilities for the VPC audit."""
from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from typing import Iterable, List, Sequence, Tuple

from .compliance import (
    CANONICAL_REGION,
    check_compliance,
    filter_by_account,
    is_canonical_region,
    non_standard_region_vpcs,
)
from .findings import Finding, InventoryItem
from .inventory import VPC


@dataclass
class VPCEvaluation:
    """Policy violations raised for a single VPC."""

    vpc: VPC
    violations: List[str]

    @property
    def failed(self) -> bool:
        return bool(self.violations)


@dataclass
class AuditResults:
    """Per-VPC evaluations for one account plus the VPCs skipped by region."""

    evaluations: List[VPCEvaluation]
    ignored: List[VPC]

    @property
    def findings(self) -> List[Finding]:
        return [
            Finding(vpc_id=item.vpc.vpc_id, region=item.vpc.region, message=message)
            for item in self.evaluations
            for message in item.violations
        ]

    @property
    def inventory(self) -> List[InventoryItem]:
        return [inventory_item_from_evaluation(item) for item in self.evaluations]


def inventory_item_from_evaluation(evaluation: VPCEvaluation) -> InventoryItem:
    """Build an :class:`InventoryItem` summarising ``evaluation``."""

    vpc = evaluation.vpc
    if not is_canonical_region(vpc):
        return InventoryItem(
            service="VPC",
            resource_id=vpc.vpc_id,
            status="IGNORED",
            details=f"Region {vpc.region or '(unknown)'} is outside {CANONICAL_REGION}.",
        )
    if evaluation.violations:
        return InventoryItem(
            service="VPC",
            resource_id=vpc.vpc_id,
            status="NON_COMPLIANT",
            details="; ".join(evaluation.violations),
        )
    return InventoryItem(
        service="VPC",
        resource_id=vpc.vpc_id,
        status="COMPLIANT",
        details="All checks passed.",
    )


def collect_audit_results(vpcs: Iterable[VPC], account_id: str) -> AuditResults:
    """Evaluate every VPC owned by *account_id*."""

    account_vpcs = filter_by_account(vpcs, account_id)
    evaluations = [VPCEvaluation(vpc=vpc, violations=check_compliance(vpc)) for vpc in account_vpcs]
    return AuditResults(evaluations=evaluations, ignored=non_standard_region_vpcs(account_vpcs))


def print_report(results: AuditResults) -> None:
    """Print failed VPCs followed by the VPCs ignored for their region."""

    for evaluation in results.evaluations:
        if not evaluation.failed:
            continue
        print(f"Failed: {evaluation.vpc.vpc_id} ({evaluation.vpc.region})")
        for violation in evaluation.violations:
            print(f"\t{violation}")
        print()

    if results.ignored:
        print("The following VPCs were ignored as are in non-standard regions:")
        for vpc in results.ignored:
            print(f"\t{vpc.vpc_id} ({vpc.region})")


def export_results_to_json(results: AuditResults, path: str) -> str:
    """Write findings and inventory from *results* to *path* as JSON."""

    document = {
        "findings": [asdict(finding) for finding in results.findings],
        "inventory": [asdict(item) for item in results.inventory],
    }
    with open(path, "w", encoding="utf-8") as fh:
        json.dump(document, fh, indent=2)
    return path


def export_results_to_excel(results: AuditResults, path: str) -> str:
    """Write *results* to an Excel workbook with findings and inventory sheets."""

    findings_sheet = (
        ("VPC ID", "Region", "Message"),
        [(finding.vpc_id, finding.region, finding.message) for finding in results.findings],
    )
    inventory_sheet = (
        ("Service", "Resource ID", "Status", "Details"),
        [(item.service, item.resource_id, item.status, item.details) for item in results.inventory],
    )
    return _export_sheets_to_excel(
        [("Findings", *findings_sheet), ("Inventory", *inventory_sheet)],
        path,
    )


def _export_sheets_to_excel(
    sheets: Sequence[Tuple[str, Sequence[str], Iterable[Sequence[object]]]],
    path: str,
) -> str:
    """Write each ``(title, headers, rows)`` sheet to a workbook using :mod:`openpyxl`."""

    try:
        from openpyxl import Workbook
        from openpyxl.utils import get_column_letter
    except ImportError as exc:  # pragma: no cover - dependency missing during tests
        raise RuntimeError(
            "The 'openpyxl' package is required to export results to Excel. "
            "Install it with 'pip install prism-vpc-audit[excel]'."
        ) from exc

    workbook = Workbook()
    workbook.remove(workbook.active)

    for title, headers, rows in sheets:
        sheet = workbook.create_sheet(title=title)
        sheet.append(list(headers))
        column_widths = [len(header) for header in headers]

        for row in rows:
            values = list(row)
            sheet.append(values)
            for idx, value in enumerate(values):
                column_widths[idx] = max(column_widths[idx], len(str(value)))

        for idx, width in enumerate(column_widths, start=1):
            column_letter = get_column_letter(idx)
            sheet.column_dimensions[column_letter].width = min(width + 2, 60)

    try:
        workbook.save(path)
    except OSError as exc:
        raise RuntimeError(f"Unable to write {path}: {exc}") from exc
    return path


__all__ = [
    "AuditResults",
    "VPCEvaluation",
    "collect_audit_results",
    "export_results_to_excel",
    "export_results_to_json",
    "inventory_item_from_evaluation",
    "print_report",
]
