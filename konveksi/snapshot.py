"""Versioned snapshots of priced line items, ledgers and orders.

A snapshot is the record persisted at order time. Later price-tier changes
never touch it: reading a snapshot back yields exactly the stored amounts.

Snapshots are plain dicts carried in a protobuf ``Struct``; ``pack_snapshot``
wraps one in an ``Any`` whose type URL names the snapshot kind. Timestamps are
RFC 3339 strings produced by protobuf ``Timestamp``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional

from google.protobuf import any_pb2, json_format, struct_pb2
from google.protobuf.timestamp_pb2 import Timestamp

from .errors import InvalidInput, errmsg
from .payments import PaymentLedger, PaymentTranche, TrancheKind, TrancheStatus
from .pricing import LineItemPriceBreakdown, OrderPriceSummary, SizePriceDetail

if TYPE_CHECKING:
    from .order import Order

SNAPSHOT_VERSION = 1
TYPE_URL_PREFIX = "type.konveksi/"

KIND_BREAKDOWN = "LineItemPriceBreakdown"
KIND_LEDGER = "PaymentLedger"
KIND_ORDER = "Order"


# Timestamps


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    ts = Timestamp()
    ts.FromDatetime(value)
    return ts.ToJsonString()


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    ts = Timestamp()
    try:
        ts.FromJsonString(value)
    except ValueError as e:
        raise InvalidInput(f"Invalid timestamp: {value}", e) from e
    return ts.ToDatetime(tzinfo=timezone.utc)


# Pricing


def breakdown_to_dict(breakdown: LineItemPriceBreakdown) -> dict[str, Any]:
    return {
        "sizeDetails": [
            {
                "size": d.size,
                "quantity": d.quantity,
                "unitPriceComponent": d.unit_price_component,
                "perSizeSubtotal": d.per_size_subtotal,
                "priceMode": d.price_mode,
            }
            for d in breakdown.size_details
        ],
        "priceMode": breakdown.price_mode,
        "material": breakdown.material,
        "subtotal": breakdown.subtotal,
        "discountPercent": breakdown.discount_percent,
        "discountAmount": breakdown.discount_amount,
        "customDesignFee": breakdown.custom_design_fee,
        "total": breakdown.total,
        "totalQuantity": breakdown.total_quantity,
        "totalDozens": breakdown.total_dozens,
        "totalDozenQuantity": breakdown.total_dozen_quantity,
        "looseUnitQuantity": breakdown.loose_unit_quantity,
    }


def breakdown_from_dict(data: dict[str, Any]) -> LineItemPriceBreakdown:
    return LineItemPriceBreakdown(
        size_details=tuple(
            SizePriceDetail(
                size=d["size"],
                quantity=int(d["quantity"]),
                unit_price_component=int(d["unitPriceComponent"]),
                per_size_subtotal=int(d["perSizeSubtotal"]),
                price_mode=d["priceMode"],
            )
            for d in data["sizeDetails"]
        ),
        price_mode=data["priceMode"],
        material=data.get("material", ""),
        subtotal=int(data["subtotal"]),
        discount_percent=int(data["discountPercent"]),
        discount_amount=int(data["discountAmount"]),
        custom_design_fee=int(data["customDesignFee"]),
        total=int(data["total"]),
        total_quantity=int(data["totalQuantity"]),
        total_dozens=int(data["totalDozens"]),
        total_dozen_quantity=int(data["totalDozenQuantity"]),
        loose_unit_quantity=int(data["looseUnitQuantity"]),
    )


def summary_to_dict(summary: OrderPriceSummary) -> dict[str, Any]:
    return {
        "subtotal": summary.subtotal,
        "discountAmount": summary.discount_amount,
        "customDesignFeeTotal": summary.custom_design_fee_total,
        "total": summary.total,
    }


# Payments


def tranche_to_dict(tranche: Optional[PaymentTranche]) -> Optional[dict[str, Any]]:
    if tranche is None:
        return None
    return {
        "kind": tranche.kind.value,
        "amount": tranche.amount,
        "status": tranche.status.value,
        "paidAt": format_timestamp(tranche.paid_at),
        "method": tranche.method,
        "reference": tranche.reference,
        "dueAt": format_timestamp(tranche.due_at),
    }


def tranche_from_dict(data: Optional[dict[str, Any]]) -> Optional[PaymentTranche]:
    if data is None:
        return None
    return PaymentTranche(
        kind=TrancheKind(data["kind"]),
        amount=int(data["amount"]),
        status=TrancheStatus(data["status"]),
        paid_at=parse_timestamp(data.get("paidAt")),
        method=data.get("method"),
        reference=data.get("reference"),
        due_at=parse_timestamp(data.get("dueAt")),
    )


def ledger_to_dict(ledger: PaymentLedger) -> dict[str, Any]:
    return {
        "totalDue": ledger.total_due,
        "downPaymentPercent": ledger.down_payment_percent,
        "downPayment": tranche_to_dict(ledger.down_payment),
        "remainingPayment": tranche_to_dict(ledger.remaining_payment),
        "fullPayment": tranche_to_dict(ledger.full_payment),
        "isFullyPaid": ledger.is_fully_paid,
    }


def ledger_from_dict(data: dict[str, Any]) -> PaymentLedger:
    percent = data.get("downPaymentPercent")
    return PaymentLedger(
        total_due=int(data["totalDue"]),
        down_payment_percent=None if percent is None else int(percent),
        down_payment=tranche_from_dict(data.get("downPayment")),
        remaining_payment=tranche_from_dict(data.get("remainingPayment")),
        full_payment=tranche_from_dict(data.get("fullPayment")),
    )


# Orders


def order_to_dict(order: "Order") -> dict[str, Any]:
    state = order.state
    return {
        "orderNumber": state.order_number,
        "customerId": state.customer_id,
        "status": state.status.value if state.status else None,
        "statusLabel": state.status.label if state.status else None,
        "isOffline": state.is_offline,
        "placedAt": format_timestamp(state.placed_at),
        "estimatedCompletion": format_timestamp(state.estimated_completion),
        "notes": state.notes,
        "version": order.version,
        "items": [
            {
                "productId": item.product_id,
                "productName": item.product_name,
                "color": item.color,
                "notes": item.notes,
                "customDesign": None
                if item.custom_design is None
                else {
                    "isCustom": item.custom_design.is_custom,
                    "feeOverride": item.custom_design.fee_override,
                    "designUrl": item.custom_design.design_url,
                    "notes": item.custom_design.notes,
                },
                "priceDetails": breakdown_to_dict(item.breakdown),
            }
            for item in state.line_items
        ],
        "paymentSummary": summary_to_dict(state.summary) if state.summary else None,
        "paymentDetails": ledger_to_dict(state.ledger) if state.ledger else None,
        "statusHistory": [
            {
                "status": entry.status.value,
                "timestamp": format_timestamp(entry.timestamp),
                "changedBy": entry.actor.user_id,
                "role": entry.actor.role.value,
                "notes": entry.note,
            }
            for entry in state.history
        ],
    }


# Envelopes


def to_struct(data: dict[str, Any]) -> struct_pb2.Struct:
    struct = struct_pb2.Struct()
    struct.update(data)
    return struct


def _versioned(kind: str, data: dict[str, Any]) -> dict[str, Any]:
    return {"schemaVersion": SNAPSHOT_VERSION, "kind": kind, "data": data}


def _unwrap(envelope: dict[str, Any], kind: str) -> dict[str, Any]:
    version = envelope.get("schemaVersion")
    if version is None or int(version) != SNAPSHOT_VERSION:
        raise InvalidInput(f"{errmsg.UNKNOWN_SNAPSHOT_VERSION}: {version}")
    if envelope.get("kind") != kind:
        raise InvalidInput(f"Expected {kind} snapshot, got {envelope.get('kind')}")
    return envelope["data"]


def pack_snapshot(kind: str, data: dict[str, Any]) -> any_pb2.Any:
    """Wrap a snapshot dict in a protobuf Any typed ``type.konveksi/<kind>``."""
    packed = any_pb2.Any()
    packed.type_url = TYPE_URL_PREFIX + kind
    packed.value = to_struct(_versioned(kind, data)).SerializeToString()
    return packed


def unpack_snapshot(packed: any_pb2.Any, kind: str) -> dict[str, Any]:
    if packed.type_url != TYPE_URL_PREFIX + kind:
        raise InvalidInput(f"Expected {TYPE_URL_PREFIX + kind}, got {packed.type_url}")
    struct = struct_pb2.Struct()
    struct.ParseFromString(packed.value)
    return _unwrap(json_format.MessageToDict(struct), kind)


def to_json(kind: str, data: dict[str, Any]) -> str:
    return json_format.MessageToJson(to_struct(_versioned(kind, data)), indent=2)


def from_json(text: str, kind: str) -> dict[str, Any]:
    try:
        struct = json_format.Parse(text, struct_pb2.Struct())
    except json_format.ParseError as e:
        raise InvalidInput("Malformed snapshot JSON", e) from e
    return _unwrap(json_format.MessageToDict(struct), kind)
