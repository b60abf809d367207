"""
Invoice calculator.

Pure math, no I/O. Given job info, a service selection, the service catalog
and optional flat-fee line items, produce a fully computed Invoice.

    cost                  = vehicle_weight * rate / 100    (rate in cents/lb)
    subtotal              = sum of selected service costs
    fuel_surcharge_amount = (subtotal + custom_services_total) * fuel_surcharge / 100
    total                 = subtotal + custom_services_total
                            + subcontractor_total + fuel_surcharge_amount

Subcontractor charges are NOT part of the fuel surcharge base.

The calculator never validates and never raises: bad numbers flow through
as NaN. The "pick a service and enter a weight" rule lives in
check_ready_to_invoice(), which callers run before calculating.
"""

import math
import re
from collections.abc import Mapping
from datetime import date
from typing import Iterable, List, Optional, Union

from pydantic import BaseModel


class JobInfo(BaseModel):
    customer_name: str
    invoice_number: str
    vehicle_type: str
    vehicle_weight: int
    problem_description: str
    fuel_surcharge: float = 15.0


class ServiceCatalogEntry(BaseModel):
    id: int
    name: str
    rate: Union[float, str]  # cents per lb, may arrive as decimal text


class CustomServiceItem(BaseModel):
    name: str
    price: float


class SubcontractorItem(BaseModel):
    name: str
    work_performed: str = ""
    price: float


class ServiceWithCost(BaseModel):
    id: int
    name: str
    rate: float
    cost: float


class Invoice(BaseModel):
    """Read-only snapshot. Recompute wholesale when inputs change."""
    customer_name: str
    invoice_number: str
    vehicle_type: str
    vehicle_weight: int
    problem_description: str
    fuel_surcharge: float
    services: List[ServiceWithCost] = []
    custom_services: List[CustomServiceItem] = []
    subcontractors: List[SubcontractorItem] = []
    subtotal: float
    custom_services_total: float
    subcontractor_total: float
    fuel_surcharge_amount: float
    total: float
    date: str

    class Config:
        frozen = True


class InvoiceNotReady(ValueError):
    """Raised by check_ready_to_invoice when the job can't be invoiced yet."""


# Leading numeric prefix, e.g. "4.5", " 2", "6.0 c/lb"
_LEADING_NUMBER = re.compile(r"\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def coerce_rate(rate) -> float:
    """Parse a rate given as decimal text or a number. Unparseable text gives NaN."""
    if isinstance(rate, str):
        match = _LEADING_NUMBER.match(rate)
        return float(match.group()) if match else math.nan
    if rate is None:
        return math.nan
    return float(rate)


def _get(entry, name):
    """Read a field from a dict, pydantic model or ORM row."""
    if isinstance(entry, Mapping):
        return entry.get(name)
    return getattr(entry, name, None)


def _selected_keys(selected_services) -> set:
    # Missing key and False both mean "not selected". Keys are compared as
    # strings since JSON object keys arrive as text.
    if isinstance(selected_services, Mapping):
        return {str(key) for key, on in selected_services.items() if on}
    return {str(key) for key in selected_services or ()}


def selected_catalog_entries(selected_services, all_services: Iterable) -> list:
    """Catalog entries whose id is selected. Unknown ids are ignored."""
    keys = _selected_keys(selected_services)
    return [entry for entry in all_services if str(_get(entry, "id")) in keys]


def _as_item(item, model):
    if isinstance(item, model):
        return item
    if isinstance(item, Mapping):
        return model(**item)
    return model.model_validate(item, from_attributes=True)


def calculate_invoice(
    job_info: JobInfo,
    selected_services,
    all_services: Iterable,
    subcontractors: Iterable = (),
    custom_services: Iterable = (),
    today: Optional[date] = None,
) -> Invoice:
    """
    Compute an Invoice.

    Args:
        job_info: JobInfo (weight in lbs, fuel surcharge in percent)
        selected_services: {service_id: bool} or an iterable of service ids
        all_services: catalog entries with id, name, rate (dicts, models or ORM rows)
        subcontractors: SubcontractorItem-like entries
        custom_services: CustomServiceItem-like entries
        today: generation date, defaults to the current date

    Returns:
        Invoice
    """
    weight = job_info.vehicle_weight

    services = []
    for entry in selected_catalog_entries(selected_services, all_services):
        rate = coerce_rate(_get(entry, "rate"))
        services.append(ServiceWithCost(
            id=_get(entry, "id"),
            name=_get(entry, "name"),
            rate=rate,
            cost=(weight * rate) / 100,
        ))

    custom_items = [_as_item(c, CustomServiceItem) for c in custom_services or ()]
    sub_items = [_as_item(s, SubcontractorItem) for s in subcontractors or ()]

    subtotal = sum((s.cost for s in services), 0.0)
    custom_services_total = sum((c.price for c in custom_items), 0.0)
    subcontractor_total = sum((s.price for s in sub_items), 0.0)
    fuel_surcharge_amount = (subtotal + custom_services_total) * (job_info.fuel_surcharge / 100)
    total = subtotal + custom_services_total + subcontractor_total + fuel_surcharge_amount

    return Invoice(
        **job_info.model_dump(),
        services=services,
        custom_services=custom_items,
        subcontractors=sub_items,
        subtotal=subtotal,
        custom_services_total=custom_services_total,
        subcontractor_total=subcontractor_total,
        fuel_surcharge_amount=fuel_surcharge_amount,
        total=total,
        date=(today or date.today()).strftime("%x"),
    )


def check_ready_to_invoice(job_info: JobInfo, selected_services, all_services: Iterable) -> None:
    """Business rule enforced before calculating: at least one service and a weight."""
    if not selected_catalog_entries(selected_services, all_services) or not job_info.vehicle_weight:
        raise InvoiceNotReady(
            "Please select at least one service and ensure vehicle weight is entered."
        )


def summarize_invoice(invoice: Invoice) -> str:
    """Plain-text summary for share / clipboard."""
    return (
        f"Invoice #{invoice.invoice_number}\n"
        f"Customer: {invoice.customer_name}\n"
        f"Total: ${invoice.total:.2f}"
    )


def invoice_service_records(invoice: Invoice) -> List[dict]:
    """Per-service cost records for persistence."""
    return [{"service_id": s.id, "cost": s.cost} for s in invoice.services]
