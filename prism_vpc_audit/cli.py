"""Command line interface for the PRISM VPC audit tool."""
from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from .core import (
    collect_audit_results,
    export_results_to_excel,
    export_results_to_json,
    print_report,
)
from .inventory import InventoryError, load_inventory


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Return parsed command line arguments."""

    parser = argparse.ArgumentParser(
        description="Audit an account's VPCs against the standard subnet layout.",
        allow_abbrev=False,
    )
    parser.add_argument(
        "-accountID",
        "--accountID",
        dest="account_id",
        default="",
        help="Specify account (ID) to audit.",
    )
    parser.add_argument("--json", dest="json_path", help="Optional path to export results as JSON")
    parser.add_argument(
        "--excel",
        dest="excel_path",
        help="Optional path to export results as an Excel workbook (.xlsx)",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point used by ``python -m prism_vpc_audit``."""

    args = parse_args(argv)

    # Carry on with the empty id; it simply matches no VPC.
    if not args.account_id:
        print("Missing required argument: accountID")

    try:
        inventory = load_inventory()
    except InventoryError as exc:
        print(exc, file=sys.stderr)
        return 1

    results = collect_audit_results(inventory.vpcs, args.account_id)
    print_report(results)

    if args.json_path:
        try:
            path = export_results_to_json(results, args.json_path)
        except OSError as exc:
            print(f"Failed to export JSON report: {exc}", file=sys.stderr)
        else:
            print(f"Results exported to {path}")

    if args.excel_path:
        try:
            path = export_results_to_excel(results, args.excel_path)
        except RuntimeError as exc:
            print(f"Failed to export Excel report: {exc}", file=sys.stderr)
        else:
            print(f"Excel report written to {path}")

    return 0


__all__ = ["main", "parse_args"]
