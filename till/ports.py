"""Collaborator interfaces the till core depends on."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from till.config import DEFAULT_TAX_MODE, SELLER_STATE_CODE
from till.models import CatalogItem, CheckoutDraft, CompanyProfile, Customer, TaxConfig, TaxMode


class KeyValueStore(Protocol):
    """Durable store consumed by the session registry."""

    def get(self, key: str) -> Any | None: ...

    def put(self, key: str, value: Any, ttl: float | None = None) -> None: ...

    def delete(self, key: str) -> None: ...

    def scan(self, prefix: str) -> dict[str, Any]: ...


class SaleRecorder(Protocol):
    """Durably records a completed sale. May be slow; may fail."""

    async def record(self, draft: CheckoutDraft) -> None: ...


class CatalogProvider(Protocol):
    def get_catalog_items(self) -> list[CatalogItem]: ...


class CustomerDirectory(Protocol):
    def get_customer_directory(self, party_type: str = "customer") -> list[Customer]: ...

    def create_customer(self, fields: dict[str, str]) -> Customer: ...


class SettingsProvider(Protocol):
    def get_company_profile(self) -> CompanyProfile: ...

    def get_tax_config(self) -> TaxConfig: ...


@dataclass(frozen=True)
class StaticSettings:
    """Company profile and tax configuration fixed at start-up."""

    company: CompanyProfile
    tax: TaxConfig

    def get_company_profile(self) -> CompanyProfile:
        return self.company

    def get_tax_config(self) -> TaxConfig:
        return self.tax


def default_settings(company: CompanyProfile) -> StaticSettings:
    return StaticSettings(
        company=company,
        tax=TaxConfig(default_tax_mode=TaxMode(DEFAULT_TAX_MODE), seller_state_code=SELLER_STATE_CODE),
    )
