import json

import pytest

from vesting_claims.exceptions import MalformedReportError
from vesting_claims.models.records import VestingSchedule
from vesting_claims.services.report_extractor import (
    clean_project_name,
    extract_recipients,
    extract_report_context,
    extract_vesting_schedule,
    load_report,
)


def test_extraction_keeps_traversal_order_and_skips_other_calls(report_factory, push_payment_call, addresses):
    report = report_factory([
        [push_payment_call(addresses.alice, 100), {"functionSignature": "approve(address,uint256)", "inputValues": []}],
        [{"functionSignature": "other()", "inputValues": []}],
        [push_payment_call(addresses.bob, 200), push_payment_call(addresses.carol, 300)],
    ])
    records = extract_recipients(report)
    assert [(r.address, r.expected_amount) for r in records] == [
        (addresses.alice, 100),
        (addresses.bob, 200),
        (addresses.carol, 300),
    ]


def test_single_qualifying_call_yields_single_record(report_factory, push_payment_call, addresses):
    report = report_factory([
        [push_payment_call(addresses.alice, 100)],
        [{"functionSignature": "other(uint256)", "inputValues": ["1"]}],
    ])
    records = extract_recipients(report)
    assert len(records) == 1
    assert records[0].address == addresses.alice
    assert records[0].expected_amount == 100


def test_signature_must_match_exactly(report_factory, push_payment_call, addresses):
    call = push_payment_call(addresses.alice, 100)
    call["functionSignature"] = "pushPayment(address,address,uint256,uint256,uint256)"
    assert extract_recipients(report_factory([[call]])) == []


def test_duplicates_are_not_merged(report_factory, push_payment_call, addresses):
    report = report_factory([[push_payment_call(addresses.alice, 1)], [push_payment_call(addresses.alice, 2)]])
    records = extract_recipients(report)
    assert [r.expected_amount for r in records] == [1, 2]


def test_amounts_beyond_64_bits_stay_exact(report_factory, push_payment_call, addresses):
    huge = 123_456_789 * 10**30 + 7
    records = extract_recipients(report_factory([[push_payment_call(addresses.alice, huge)]]))
    assert records[0].expected_amount == huge


@pytest.mark.parametrize("bad_report", [
    {},
    {"transactions": {}},
    {"transactions": {"readable": "nope"}},
    {"transactions": {"readable": [[{"inputValues": []}]]}},
    {"transactions": {"readable": [{"functionSignature": "x"}]}},
])
def test_malformed_shapes_raise(bad_report):
    with pytest.raises(MalformedReportError):
        extract_recipients(bad_report)


def test_shorthand_recipient_is_not_an_address(report_factory, push_payment_call):
    # Reports written with shorthand recipients such as "0xA" are rejected;
    # only full 20-byte hex addresses are extracted.
    with pytest.raises(MalformedReportError):
        extract_recipients(report_factory([[push_payment_call("0xA", 100)]]))


def test_bad_recipient_or_amount_aborts_everything(report_factory, push_payment_call, addresses):
    good = push_payment_call(addresses.alice, 100)
    with pytest.raises(MalformedReportError):
        extract_recipients(report_factory([[good, push_payment_call("not-an-address", 5)]]))
    with pytest.raises(MalformedReportError):
        extract_recipients(report_factory([[good, push_payment_call(addresses.bob, "12.5")]]))
    with pytest.raises(MalformedReportError):
        extract_recipients(report_factory([[good, push_payment_call(addresses.bob, "-3")]]))
    short = {"functionSignature": good["functionSignature"], "inputValues": [addresses.bob]}
    with pytest.raises(MalformedReportError):
        extract_recipients(report_factory([[short]]))


def test_report_context_and_project_name_cleanup(report_factory, addresses):
    ctx = extract_report_context(report_factory([], project_name="Acme_Project_S2"))
    assert ctx.project_name == "Acme_Project"
    assert ctx.payment_router == addresses.router
    assert ctx.token == addresses.token
    assert ctx.safe is not None
    assert clean_project_name("Foo__") == "Foo"
    assert clean_project_name("Foo_s2") == "Foo"
    assert clean_project_name(None) is None


def test_vesting_schedule_from_first_push_payment(report_factory, push_payment_call, addresses):
    report = report_factory([[push_payment_call(addresses.alice, 1, start="100", cliff="50", end="1000")]])
    assert extract_vesting_schedule(report) == VestingSchedule(start=100, cliff=50, end=1000)

    with pytest.raises(MalformedReportError):
        extract_vesting_schedule(report_factory([]))


def test_load_report_errors(tmp_path):
    missing = tmp_path / "missing.json"
    with pytest.raises(MalformedReportError):
        load_report(missing)

    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    with pytest.raises(MalformedReportError):
        load_report(broken)

    listed = tmp_path / "list.json"
    listed.write_text(json.dumps([1, 2]), encoding="utf-8")
    with pytest.raises(MalformedReportError):
        load_report(listed)
