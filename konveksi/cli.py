"""Command line entry point.

Usage:
    konveksi quote order-item.json [--format text|json]
    konveksi transitions [--role ROLE]

A quote file describes one line item:

    {
      "tier": {"unitPrice": 50000, "dozenUnitPrice": 45000, "discountPercent": 10},
      "sizes": [{"size": "M", "quantity": 6}, {"size": "XL", "quantity": 6, "additionalPrice": 5000}],
      "material": {"name": "Cotton Combed 30s", "additionalPrice": 2000},
      "customDesign": {"feeOverride": 75000}
    }
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

from .config import EngineConfig
from .errors import InvalidInput, OrderRejectedError
from .log import configure_logging, get_logger
from .money import format_rupiah
from .pricing import (
    NO_MATERIAL,
    CustomDesignRequest,
    LineItemPriceBreakdown,
    MaterialChoice,
    PriceTier,
    SizeEntry,
    price_line_item,
)
from .snapshot import KIND_BREAKDOWN, breakdown_to_dict, to_json
from .status import TRANSITIONS, OrderStatus, Role, allowed_transitions


def load_quote(data: dict[str, Any], config: EngineConfig) -> LineItemPriceBreakdown:
    """Price a line item described by a quote document."""
    try:
        tier_data = data["tier"]
        tier = PriceTier(
            unit_price=tier_data["unitPrice"],
            dozen_unit_price=tier_data.get("dozenUnitPrice"),
            dozen_threshold=tier_data.get("dozenThreshold", config.dozen_threshold),
            discount_percent=tier_data.get("discountPercent", 0),
            custom_design_fee=tier_data.get("customDesignFee", 0),
        )
        sizes = [
            SizeEntry(
                size=s["size"],
                quantity=s["quantity"],
                additional_price=s.get("additionalPrice", 0),
            )
            for s in data["sizes"]
        ]

        material = NO_MATERIAL
        if data.get("material"):
            material = MaterialChoice(
                name=data["material"].get("name", ""),
                additional_price=data["material"].get("additionalPrice", 0),
            )

        custom_design = None
        design = data.get("customDesign")
        if design:
            # `true` asks for the tier's fee
            design = {} if design is True else design
            custom_design = CustomDesignRequest(
                fee_override=design.get("feeOverride"),
                design_url=design.get("designUrl", ""),
                notes=design.get("notes", ""),
            )
    except (KeyError, TypeError, AttributeError) as e:
        raise InvalidInput("Malformed quote document", e) from e

    return price_line_item(sizes, tier, material, custom_design)


def render_breakdown(breakdown: LineItemPriceBreakdown) -> str:
    lines = [f"Price mode: {breakdown.price_mode}"]
    if breakdown.material:
        lines.append(f"Material: {breakdown.material}")
    for d in breakdown.size_details:
        lines.append(
            f"  {d.size:<6} {d.quantity:>4} x {format_rupiah(d.unit_price_component):>14}"
            f" = {format_rupiah(d.per_size_subtotal):>16}"
        )
    lines.append(f"Subtotal:          {format_rupiah(breakdown.subtotal)}")
    if breakdown.discount_amount:
        lines.append(
            f"Discount ({breakdown.discount_percent}%):   -{format_rupiah(breakdown.discount_amount)}"
        )
    if breakdown.custom_design_fee:
        lines.append(f"Custom design fee: {format_rupiah(breakdown.custom_design_fee)}")
    lines.append(f"Total:             {format_rupiah(breakdown.total)}")
    lines.append(
        f"Quantity: {breakdown.total_quantity} "
        f"({breakdown.total_dozens} dozen + {breakdown.loose_unit_quantity} loose)"
    )
    return "\n".join(lines)


def render_transitions(role: Optional[Role] = None) -> str:
    lines = []
    if role is None:
        for (from_status, to_status), rule in TRANSITIONS.items():
            roles = ", ".join(sorted(r.value for r in rule.roles))
            guard = " [requires full payment]" if rule.requires_full_payment else ""
            lines.append(f"{from_status.value} -> {to_status.value}: {roles}{guard}")
        return "\n".join(lines)

    for status in OrderStatus:
        targets = allowed_transitions(status, role)
        if targets:
            lines.append(f"{status.value} -> {', '.join(t.value for t in targets)}")
    return "\n".join(lines)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="konveksi", description="Konveksi order engine tools")
    sub = parser.add_subparsers(dest="command", required=True)

    quote = sub.add_parser("quote", help="Price a line item from a JSON file")
    quote.add_argument("file", type=Path, help="Quote document")
    quote.add_argument(
        "--format",
        choices=["text", "json"],
        default="text",
        help="Output format",
    )

    transitions = sub.add_parser("transitions", help="Show the status transition table")
    transitions.add_argument(
        "--role",
        choices=[r.value for r in Role],
        help="Only show transitions this role may request",
    )

    args = parser.parse_args(argv)

    try:
        config = EngineConfig.from_env()
    except InvalidInput as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    configure_logging(config.log_level)
    log = get_logger("cli", command=args.command)

    if args.command == "transitions":
        print(render_transitions(Role(args.role) if args.role else None))
        return 0

    try:
        data = json.loads(args.file.read_text())
        breakdown = load_quote(data, config)
    except (OSError, json.JSONDecodeError) as e:
        print(f"Error: cannot read {args.file}: {e}", file=sys.stderr)
        return 1
    except OrderRejectedError as e:
        log.warning("quote_rejected", file=str(args.file), reason=str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.format == "json":
        print(to_json(KIND_BREAKDOWN, breakdown_to_dict(breakdown)))
    else:
        print(render_breakdown(breakdown))
    return 0


if __name__ == "__main__":
    sys.exit(main())
