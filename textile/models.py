from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from textile.utils import parse_json_list, to_float, to_int

UNCLASSIFIED = "unclassified"
CLASSIFICATIONS = (UNCLASSIFIED, "good", "bad", "wastage", "shorting")

CREDIT = "Credit"
DEBIT = "Debit"
PAYMENT_TYPES = (CREDIT, DEBIT)


def _get(row: Mapping[str, Any], key: str, default: Any = None) -> Any:
    # sqlite3.Row supports keys() and [] but not .get()
    return row[key] if key in row.keys() else default


def _opt_float(v: Any) -> Optional[float]:
    return None if v is None or v == "" else to_float(v)


@dataclass(frozen=True)
class QualityDetail:
    quality_name: str
    quantity: float  # metres received for this quality
    rate: float = 0.0  # per metre


def parse_quality_details(raw: Any) -> list[QualityDetail]:
    items = parse_json_list(raw, required_keys=("quality_name",), field="quality_details")
    return [
        QualityDetail(
            quality_name=str(i["quality_name"]),
            quantity=to_float(i.get("quantity")),
            rate=to_float(i.get("rate")),
        )
        for i in items
    ]


@dataclass(frozen=True)
class SizeQuantity:
    size: str
    quantity: int


def parse_sizes(raw: Any) -> list[SizeQuantity]:
    items = parse_json_list(raw, required_keys=("size", "quantity"), field="product_size")
    return [SizeQuantity(size=str(i["size"]), quantity=to_int(i["quantity"])) for i in items]


@dataclass(frozen=True)
class Ledger:
    ledger_id: str
    business_name: str
    contact_person_name: Optional[str] = None
    mobile_number: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    district: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    zip_code: Optional[str] = None
    gst_number: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Ledger":
        return cls(
            ledger_id=str(row["ledger_id"]),
            business_name=str(row["business_name"]),
            **{
                k: _get(row, k)
                for k in (
                    "contact_person_name", "mobile_number", "email", "address", "city",
                    "district", "state", "country", "zip_code", "gst_number",
                )
            },
        )

    @property
    def address_line(self) -> str:
        line = ", ".join(p for p in (self.city, self.district, self.state) if p)
        if self.zip_code:
            line = f"{line} - {self.zip_code}" if line else str(self.zip_code)
        return line


@dataclass(frozen=True)
class WeaverChallan:
    """Raw-material receipt; its batch number keys everything downstream."""

    id: int
    batch_number: str
    challan_date: str
    challan_no: str
    quantity: float  # total grey metres
    ms_party_name: str = ""
    ledger_id: Optional[str] = None
    quality_details: tuple[QualityDetail, ...] = ()
    transport_charge: float = 0.0
    vendor_amount: float = 0.0
    sgst: Optional[str] = None
    cgst: Optional[str] = None
    igst: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "WeaverChallan":
        return cls(
            id=to_int(_get(row, "id")),
            batch_number=str(row["batch_number"]),
            challan_date=str(row["challan_date"]),
            challan_no=str(_get(row, "challan_no", "")),
            quantity=to_float(_get(row, "total_grey_mtr")),
            ms_party_name=str(_get(row, "ms_party_name") or ""),
            ledger_id=_get(row, "ledger_id"),
            quality_details=tuple(parse_quality_details(_get(row, "quality_details"))),
            transport_charge=to_float(_get(row, "transport_charge")),
            vendor_amount=to_float(_get(row, "vendor_amount")),
            sgst=_get(row, "sgst"),
            cgst=_get(row, "cgst"),
            igst=_get(row, "igst"),
        )


@dataclass(frozen=True)
class ShortingEntry:
    id: int
    batch_number: str
    entry_date: str
    quality_name: str
    quantity: float
    weaver_challan_qty: float = 0.0
    weaver_challan_id: Optional[int] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ShortingEntry":
        return cls(
            id=to_int(_get(row, "id")),
            batch_number=str(_get(row, "batch_number", "")),
            entry_date=str(_get(row, "entry_date", "")),
            quality_name=str(_get(row, "quality_name", "")),
            quantity=to_float(_get(row, "shorting_qty")),
            weaver_challan_qty=to_float(_get(row, "weaver_challan_qty")),
            weaver_challan_id=_get(row, "weaver_challan_id"),
        )


@dataclass(frozen=True)
class IsteachingChallan:
    """Stitching challan: pieces produced from one or more batches."""

    id: int
    date: str
    challan_no: str
    quantity: int
    quality: str = ""
    batch_numbers: tuple[str, ...] = ()
    ledger_id: Optional[str] = None
    product_name: Optional[str] = None
    sizes: tuple[SizeQuantity, ...] = ()
    top_qty: Optional[float] = None
    top_pcs_qty: Optional[float] = None
    bottom_qty: Optional[float] = None
    bottom_pcs_qty: Optional[float] = None
    both_selected: bool = False
    both_top_qty: Optional[float] = None
    both_bottom_qty: Optional[float] = None
    inventory_classification: str = UNCLASSIFIED
    transport_charge: float = 0.0

    @classmethod
    def from_row(cls, row: Mapping[str, Any], batch_numbers: tuple[str, ...] = ()) -> "IsteachingChallan":
        return cls(
            id=to_int(_get(row, "id")),
            date=str(_get(row, "date", "")),
            challan_no=str(_get(row, "challan_no", "")),
            quantity=to_int(_get(row, "quantity")),
            quality=str(_get(row, "quality") or ""),
            batch_numbers=tuple(batch_numbers),
            ledger_id=_get(row, "ledger_id"),
            product_name=_get(row, "product_name"),
            sizes=tuple(parse_sizes(_get(row, "product_size"))),
            top_qty=_opt_float(_get(row, "top_qty")),
            top_pcs_qty=_opt_float(_get(row, "top_pcs_qty")),
            bottom_qty=_opt_float(_get(row, "bottom_qty")),
            bottom_pcs_qty=_opt_float(_get(row, "bottom_pcs_qty")),
            both_selected=bool(_get(row, "both_selected")),
            both_top_qty=_opt_float(_get(row, "both_top_qty")),
            both_bottom_qty=_opt_float(_get(row, "both_bottom_qty")),
            inventory_classification=str(_get(row, "inventory_classification") or UNCLASSIFIED),
            transport_charge=to_float(_get(row, "transport_charge")),
        )


@dataclass(frozen=True)
class Expense:
    id: int
    expense_date: str
    challan_no: str
    amount: float
    reason: str = ""

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Expense":
        categories = parse_json_list(_get(row, "expense_for"), field="expense_for")
        reason = ", ".join(str(c) for c in categories)
        other = _get(row, "other_expense_description")
        if other:
            reason = f"{reason} ({other})" if reason else str(other)
        return cls(
            id=to_int(_get(row, "id")),
            expense_date=str(_get(row, "expense_date", "")),
            challan_no=str(_get(row, "challan_no", "")),
            amount=to_float(_get(row, "cost")),
            reason=reason,
        )


@dataclass(frozen=True)
class PaymentVoucher:
    id: int
    date: str
    payment_type: str
    amount: float
    payment_for: str = ""
    ledger_id: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "PaymentVoucher":
        return cls(
            id=to_int(_get(row, "id")),
            date=str(row["date"]),
            payment_type=str(row["payment_type"]),
            amount=to_float(_get(row, "amount")),
            payment_for=str(_get(row, "payment_for") or ""),
            ledger_id=_get(row, "ledger_id"),
        )


@dataclass
class EditLogEntry:
    changed_at: str
    changes: dict = field(default_factory=dict)
