"""
Invoice calculator tests: pure math, no database.

Tests:
1-3.   Worked examples (single service, mixed line items, subcontractor exclusion)
4-8.   Selection handling (unknown ids, False values, string keys, id iterables)
9-12.  Rate coercion (decimal text, Decimal, unparseable text, None)
13-15. Edge cases (empty selection, zero/negative weight)
16-18. Snapshot behaviour (date, idempotence, frozen)
19-22. Ready-to-invoice rule, share summary, persistence records
"""

import math
from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from ppp.invoice import (
    CustomServiceItem,
    InvoiceNotReady,
    JobInfo,
    ServiceCatalogEntry,
    SubcontractorItem,
    calculate_invoice,
    check_ready_to_invoice,
    coerce_rate,
    invoice_service_records,
    summarize_invoice,
)


def _catalog():
    return [
        ServiceCatalogEntry(id=1, name="Normal Recovery (On or Near Highway)", rate=4.0),
        ServiceCatalogEntry(id=2, name="Contained Recovery/Winching", rate="4.0"),
        ServiceCatalogEntry(id=3, name="Salvage/Debris Recovery", rate="5.5"),
        ServiceCatalogEntry(id=6, name="Rollover", rate=4.0),
    ]


def _job(weight=10000, surcharge=15.0):
    return JobInfo(
        customer_name="Acme Freight",
        invoice_number="INV-1001",
        vehicle_type="Freightliner Cascadia",
        vehicle_weight=weight,
        problem_description="Jackknifed on the off-ramp",
        fuel_surcharge=surcharge,
    )


# ============================================================
# 1-3. Worked examples
# ============================================================

def test_single_service_with_fuel_surcharge():
    """10,000 lbs at 4.0c/lb = $400, 15% surcharge = $60, total $460."""
    invoice = calculate_invoice(_job(10000, 15), {1: True}, _catalog())
    assert len(invoice.services) == 1
    assert invoice.services[0].cost == pytest.approx(400.00)
    assert invoice.subtotal == pytest.approx(400.00)
    assert invoice.fuel_surcharge_amount == pytest.approx(60.00)
    assert invoice.total == pytest.approx(460.00)


def test_services_custom_items_and_subcontractor():
    """5,000 lbs, 4.0 + 5.5c/lb, $50 custom, $100 sub, 10% surcharge = $677.50."""
    invoice = calculate_invoice(
        _job(5000, 10),
        {1: True, 3: True},
        _catalog(),
        subcontractors=[SubcontractorItem(name="Heavy Lift Co", work_performed="Crane lift", price=100)],
        custom_services=[CustomServiceItem(name="Absorbent cleanup", price=50)],
    )
    costs = {s.id: s.cost for s in invoice.services}
    assert costs == {1: pytest.approx(200.00), 3: pytest.approx(275.00)}
    assert invoice.subtotal == pytest.approx(475.00)
    assert invoice.custom_services_total == pytest.approx(50.00)
    assert invoice.subcontractor_total == pytest.approx(100.00)
    assert invoice.fuel_surcharge_amount == pytest.approx(52.50)
    assert invoice.total == pytest.approx(677.50)


def test_subcontractors_excluded_from_surcharge_base():
    """Adding a subcontractor raises the total by exactly its price."""
    without = calculate_invoice(_job(), {1: True}, _catalog())
    with_sub = calculate_invoice(
        _job(), {1: True}, _catalog(),
        subcontractors=[{"name": "Tire shop", "work_performed": "Replace steer tire", "price": 250}],
    )
    assert with_sub.fuel_surcharge_amount == pytest.approx(without.fuel_surcharge_amount)
    assert with_sub.total == pytest.approx(without.total + 250)
    assert with_sub.total == pytest.approx(
        with_sub.subtotal + with_sub.custom_services_total
        + with_sub.subcontractor_total + with_sub.fuel_surcharge_amount
    )


# ============================================================
# 4-8. Selection handling
# ============================================================

def test_unknown_service_id_is_ignored():
    baseline = calculate_invoice(_job(), {1: True}, _catalog())
    invoice = calculate_invoice(_job(), {1: True, 999: True}, _catalog())
    assert [s.id for s in invoice.services] == [1]
    assert invoice.subtotal == pytest.approx(baseline.subtotal)


def test_false_and_missing_entries_mean_not_selected():
    invoice = calculate_invoice(_job(), {1: False, 2: True}, _catalog())
    assert [s.id for s in invoice.services] == [2]


def test_string_keys_from_json_match_integer_ids():
    invoice = calculate_invoice(_job(), {"1": True, "3": True}, _catalog())
    assert [s.id for s in invoice.services] == [1, 3]


def test_selection_as_set_of_ids():
    invoice = calculate_invoice(_job(), {2, 6}, _catalog())
    assert [s.id for s in invoice.services] == [2, 6]


def test_services_follow_catalog_order():
    invoice = calculate_invoice(_job(), {6: True, 1: True}, _catalog())
    assert [s.id for s in invoice.services] == [1, 6]


# ============================================================
# 9-12. Rate coercion
# ============================================================

def test_text_rate_is_parsed():
    invoice = calculate_invoice(_job(5000), {3: True}, _catalog())
    assert invoice.services[0].rate == 5.5
    assert isinstance(invoice.services[0].rate, float)


def test_decimal_rate_from_database_row():
    catalog = [{"id": 1, "name": "Rollover", "rate": Decimal("4.00")}]
    invoice = calculate_invoice(_job(10000), {1: True}, catalog)
    assert invoice.subtotal == pytest.approx(400.00)


def test_unparseable_rate_propagates_nan():
    catalog = [ServiceCatalogEntry(id=1, name="Broken", rate="n/a")]
    invoice = calculate_invoice(_job(), {1: True}, catalog)
    assert math.isnan(invoice.services[0].cost)
    assert math.isnan(invoice.total)


def test_coerce_rate_leading_number():
    assert coerce_rate("4.5") == 4.5
    assert coerce_rate(" 2") == 2.0
    assert coerce_rate("6.0 c/lb") == 6.0
    assert coerce_rate(3) == 3.0
    assert math.isnan(coerce_rate("abc"))
    assert math.isnan(coerce_rate(None))


# ============================================================
# 13-15. Edge cases
# ============================================================

def test_empty_selection():
    invoice = calculate_invoice(_job(), {}, _catalog())
    assert invoice.services == []
    assert invoice.subtotal == 0
    assert invoice.fuel_surcharge_amount == 0
    assert invoice.total == 0


def test_empty_selection_total_equals_subcontractor_total():
    invoice = calculate_invoice(
        _job(), {}, _catalog(),
        subcontractors=[SubcontractorItem(name="Locksmith", price=85)],
    )
    assert invoice.fuel_surcharge_amount == 0
    assert invoice.subcontractor_total == pytest.approx(85)
    assert invoice.total == pytest.approx(invoice.subcontractor_total)


def test_zero_and_negative_weight_flow_through():
    zero = calculate_invoice(_job(weight=0), {1: True}, _catalog())
    assert zero.subtotal == 0
    negative = calculate_invoice(_job(weight=-1000), {1: True}, _catalog())
    assert negative.subtotal == pytest.approx(-40.0)
    assert negative.total == pytest.approx(-46.0)


# ============================================================
# 16-18. Snapshot behaviour
# ============================================================

def test_date_uses_locale_representation():
    day = date(2026, 3, 14)
    invoice = calculate_invoice(_job(), {1: True}, _catalog(), today=day)
    assert invoice.date == day.strftime("%x")


def test_same_inputs_give_identical_invoices():
    day = date(2026, 3, 14)
    args = (_job(5000, 10), {1: True, 3: True}, _catalog())
    kwargs = {"custom_services": [CustomServiceItem(name="Tarp", price=50)], "today": day}
    assert calculate_invoice(*args, **kwargs) == calculate_invoice(*args, **kwargs)


def test_invoice_is_read_only():
    invoice = calculate_invoice(_job(), {1: True}, _catalog())
    with pytest.raises(ValidationError):
        invoice.total = 0


# ============================================================
# 19-22. Ready rule, summary, records
# ============================================================

def test_ready_to_invoice_requires_a_known_service():
    with pytest.raises(InvoiceNotReady):
        check_ready_to_invoice(_job(), {}, _catalog())
    with pytest.raises(InvoiceNotReady):
        check_ready_to_invoice(_job(), {999: True}, _catalog())


def test_ready_to_invoice_requires_weight():
    with pytest.raises(InvoiceNotReady, match="vehicle weight"):
        check_ready_to_invoice(_job(weight=0), {1: True}, _catalog())
    check_ready_to_invoice(_job(), {1: True}, _catalog())


def test_share_summary():
    invoice = calculate_invoice(_job(10000, 15), {1: True}, _catalog())
    assert summarize_invoice(invoice) == "Invoice #INV-1001\nCustomer: Acme Freight\nTotal: $460.00"


def test_service_records_for_persistence():
    invoice = calculate_invoice(_job(5000), {1: True, 3: True}, _catalog())
    records = invoice_service_records(invoice)
    assert records == [
        {"service_id": 1, "cost": pytest.approx(200.0)},
        {"service_id": 3, "cost": pytest.approx(275.0)},
    ]
