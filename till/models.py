"""Domain models for the till."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any
from uuid import uuid4


class TaxMode(str, Enum):
    INCLUSIVE = "inclusive"
    EXCLUSIVE = "exclusive"


class PaymentMethod(str, Enum):
    CASH = "cash"
    UPI = "upi"
    CARD = "card"
    CREDIT = "credit"


class DiscountType(str, Enum):
    PERCENT = "percent"
    AMOUNT = "amount"


class ShareChannel(str, Enum):
    WHATSAPP = "whatsapp"
    SMS = "sms"
    PRINT = "print"
    NONE = "none"


class TicketStatus(str, Enum):
    ACTIVE = "active"
    PROCESSING = "processing"
    COMPLETED = "completed"


@dataclass(frozen=True)
class CatalogItem:
    """A sellable inventory item as seen by the till."""

    item_id: str
    name: str
    selling_price: float
    stock: int
    tax_rate_percent: float = 0.0
    unit: str = "PCS"
    tax_mode: TaxMode | None = None
    category: str = ""
    item_code: str = ""
    hsn_code: str = ""
    is_active: bool = True


@dataclass(frozen=True)
class CartLine:
    """One priced row of a ticket's cart."""

    line_id: str
    catalog_item_id: str
    name: str
    unit_price_excl_tax: float
    quantity: int
    tax_rate_percent: float
    tax_amount: float
    unit: str = "PCS"
    discount_percent: float | None = None

    @property
    def amount(self) -> float:
        return self.unit_price_excl_tax * self.quantity

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> CartLine:
        return cls(
            line_id=str(raw["line_id"]),
            catalog_item_id=str(raw["catalog_item_id"]),
            name=str(raw["name"]),
            unit_price_excl_tax=float(raw["unit_price_excl_tax"]),
            quantity=int(raw["quantity"]),
            tax_rate_percent=float(raw["tax_rate_percent"]),
            tax_amount=float(raw["tax_amount"]),
            unit=str(raw.get("unit") or "PCS"),
            discount_percent=raw.get("discount_percent"),
        )


@dataclass(frozen=True)
class Discount:
    type: DiscountType = DiscountType.PERCENT
    value: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "value": self.value}

    @classmethod
    def from_dict(cls, raw: dict[str, Any] | None) -> Discount:
        if not raw:
            return cls()
        return cls(type=DiscountType(raw.get("type", DiscountType.PERCENT.value)), value=float(raw.get("value", 0.0)))


@dataclass(frozen=True)
class Ticket:
    """A customer tab: one walk-in customer's cart within a terminal queue."""

    ticket_id: str
    token_number: int
    created_at: float
    last_updated: float
    customer_name: str = ""
    customer_phone: str | None = None
    customer_id: str | None = None
    customer_state_code: str | None = None
    lines: tuple[CartLine, ...] = ()
    status: TicketStatus = TicketStatus.ACTIVE
    is_in_checkout: bool = False
    discount: Discount = field(default_factory=Discount)

    @property
    def is_open(self) -> bool:
        return self.status is not TicketStatus.COMPLETED

    def to_dict(self) -> dict[str, Any]:
        raw = asdict(self)
        raw["lines"] = [line.to_dict() for line in self.lines]
        raw["status"] = self.status.value
        raw["discount"] = self.discount.to_dict()
        return raw

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Ticket:
        return cls(
            ticket_id=str(raw["ticket_id"]),
            token_number=int(raw["token_number"]),
            created_at=float(raw["created_at"]),
            last_updated=float(raw["last_updated"]),
            customer_name=str(raw.get("customer_name") or ""),
            customer_phone=raw.get("customer_phone"),
            customer_id=raw.get("customer_id"),
            customer_state_code=raw.get("customer_state_code"),
            lines=tuple(CartLine.from_dict(line) for line in raw.get("lines", [])),
            status=TicketStatus(raw.get("status", TicketStatus.ACTIVE.value)),
            is_in_checkout=bool(raw.get("is_in_checkout", False)),
            discount=Discount.from_dict(raw.get("discount")),
        )


@dataclass
class SessionRecord:
    """Durable state of one terminal, mirroring its active ticket."""

    session_id: str
    created_at: float
    last_updated: float
    cart: list[CartLine] = field(default_factory=list)
    customer_id: str | None = None
    customer_name: str = ""
    customer_phone: str = ""
    payment_method: PaymentMethod | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "created_at": self.created_at,
            "last_updated": self.last_updated,
            "cart": [line.to_dict() for line in self.cart],
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "payment_method": self.payment_method.value if self.payment_method else None,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> SessionRecord:
        method = raw.get("payment_method")
        return cls(
            session_id=str(raw["session_id"]),
            created_at=float(raw["created_at"]),
            last_updated=float(raw["last_updated"]),
            cart=[CartLine.from_dict(line) for line in raw.get("cart", [])],
            customer_id=raw.get("customer_id"),
            customer_name=str(raw.get("customer_name") or ""),
            customer_phone=str(raw.get("customer_phone") or ""),
            payment_method=PaymentMethod(method) if method else None,
        )


@dataclass(frozen=True)
class CustomerInfo:
    name: str
    is_walk_in: bool
    id: str | None = None
    phone: str | None = None


@dataclass(frozen=True)
class PaymentInfo:
    method: PaymentMethod
    amount: float
    received_amount: float | None = None
    change_amount: float | None = None
    transaction_id: str | None = None


@dataclass(frozen=True)
class DiscountInfo:
    type: DiscountType
    value: float
    discount_amount: float


@dataclass(frozen=True)
class CheckoutDraft:
    """Immutable snapshot of a completed sale, handed to the sale recorder.

    ``bill_number`` is the short number printed and shown to the customer and
    may repeat over time; ``sale_id`` identifies the sale in storage.
    """

    bill_number: str
    token_number: int
    created_at: float
    customer: CustomerInfo
    payment: PaymentInfo
    discount: DiscountInfo
    round_off: float
    grand_total: float
    items: tuple[CartLine, ...]
    subtotal: float = 0.0
    total_tax: float = 0.0
    cgst: float = 0.0
    sgst: float = 0.0
    igst: float = 0.0
    sale_id: str = field(default_factory=lambda: uuid4().hex)

    def to_dict(self) -> dict[str, Any]:
        """Wire/storage shape of the draft."""
        payment: dict[str, Any] = {"method": self.payment.method.value, "amount": self.payment.amount}
        if self.payment.received_amount is not None:
            payment["receivedAmount"] = self.payment.received_amount
        if self.payment.change_amount is not None:
            payment["changeAmount"] = self.payment.change_amount
        if self.payment.transaction_id:
            payment["transactionId"] = self.payment.transaction_id

        customer: dict[str, Any] = {"name": self.customer.name, "isWalkIn": self.customer.is_walk_in}
        if self.customer.id:
            customer["id"] = self.customer.id
        if self.customer.phone:
            customer["phone"] = self.customer.phone

        return {
            "saleId": self.sale_id,
            "billNumber": self.bill_number,
            "tokenNumber": self.token_number,
            "createdAt": self.created_at,
            "customer": customer,
            "payment": payment,
            "discount": {
                "type": self.discount.type.value,
                "value": self.discount.value,
                "discountAmount": self.discount.discount_amount,
            },
            "roundOff": self.round_off,
            "grandTotal": self.grand_total,
            "subtotal": self.subtotal,
            "totalTax": self.total_tax,
            "gst": {"cgst": self.cgst, "sgst": self.sgst, "igst": self.igst},
            "items": [line.to_dict() for line in self.items],
        }


def state_code_from_gstin(gstin: str | None) -> str | None:
    """Return the two-digit state code a GSTIN starts with."""
    code = (gstin or "").strip()[:2]
    return code if len(code) == 2 and code.isdigit() else None


@dataclass(frozen=True)
class Customer:
    """A party from the customer directory."""

    customer_id: str
    name: str
    phone: str = ""
    gstin: str = ""

    @property
    def state_code(self) -> str | None:
        return state_code_from_gstin(self.gstin)


@dataclass(frozen=True)
class CompanyProfile:
    name: str = "Our Store"
    address: str = ""
    city: str = ""
    state: str = ""
    pincode: str = ""
    phone: str = ""
    gstin: str = ""
    upi_id: str = ""


@dataclass(frozen=True)
class TaxConfig:
    default_tax_mode: TaxMode = TaxMode.EXCLUSIVE
    seller_state_code: str = "27"
