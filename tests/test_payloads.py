from __future__ import annotations

import pytest

from memberlink_api.services.bridge.payloads import (
    DEFAULT_REJECTION_REASON,
    EVENT_ALIASES,
    EventCategory,
    FlatBalance,
    IdentityAccepted,
    IdentityRejected,
    IdentityUnrecognized,
    NestedBalance,
    NumericBalance,
    UnrecognizedBalance,
    categorize_event,
    classify_balance_payload,
    coerce_balance,
    normalize_balance,
    parse_identity_payload,
)


def test_event_aliases_cover_both_categories() -> None:
    assert categorize_event("cus return") is EventCategory.IDENTITY
    assert categorize_event("user_data") is EventCategory.IDENTITY
    assert categorize_event("credit_push") is EventCategory.BALANCE
    assert categorize_event("balance_update") is EventCategory.BALANCE
    assert categorize_event("chat message") is None
    assert set(EVENT_ALIASES.values()) == {EventCategory.IDENTITY, EventCategory.BALANCE}


def test_identity_accepted_prefers_mm_user() -> None:
    parsed = parse_identity_payload(
        {
            "success": True,
            "data": {"mm_user": "pm12345", "username": "ignored", "first_name": "Somchai", "last_name": "Jaidee"},
        }
    )

    assert parsed == IdentityAccepted(username="pm12345", first_name="Somchai", last_name="Jaidee")


def test_identity_accepted_falls_back_to_username_and_phone() -> None:
    parsed = parse_identity_payload({"success": 1, "data": {"username": "pm1", "tel": "0812345678"}})

    assert isinstance(parsed, IdentityAccepted)
    assert parsed.username == "pm1"
    assert parsed.phone == "0812345678"
    assert parsed.first_name is None


def test_identity_rejected_uses_upstream_message() -> None:
    parsed = parse_identity_payload({"success": False, "data": {"message": "เบอร์โทรศัพท์หรือรหัสผ่านไม่ถูกต้อง"}})

    assert parsed == IdentityRejected(reason="เบอร์โทรศัพท์หรือรหัสผ่านไม่ถูกต้อง")


def test_identity_rejected_without_message_uses_default() -> None:
    assert parse_identity_payload({"success": False}) == IdentityRejected(reason=DEFAULT_REJECTION_REASON)


@pytest.mark.parametrize("payload", [None, "ok", 42, [], {"success": True}, {"data": {"mm_user": "x"}}])
def test_identity_unrecognized_shapes(payload) -> None:
    assert isinstance(parse_identity_payload(payload), IdentityUnrecognized)


@pytest.mark.parametrize(
    ("payload", "variant"),
    [
        (1500, NumericBalance(1500)),
        ("2,500.75", NumericBalance("2,500.75")),
        ({"data": {"total_credit": 300}}, NestedBalance("total_credit", 300)),
        ({"data": {"credit": 0, "balance": 99}}, NestedBalance("credit", 0)),
        ({"data": {"amount": "12"}}, NestedBalance("amount", "12")),
        ({"data": 450}, NestedBalance("data", 450)),
        ({"balance": 700}, FlatBalance(700)),
        ({"data": {"unrelated": 1}, "balance": 5}, FlatBalance(5)),
        ({"data": {}}, UnrecognizedBalance()),
        (True, UnrecognizedBalance()),
        (None, UnrecognizedBalance()),
        ([1, 2], UnrecognizedBalance()),
    ],
)
def test_classify_balance_payload(payload, variant) -> None:
    assert classify_balance_payload(payload) == variant


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (1234.5, 1234.5),
        ("1,234.50", 1234.5),
        (" 10 ", 10.0),
        ("abc", 0.0),
        (-20, 0.0),
        (float("nan"), 0.0),
        (float("inf"), 0.0),
        (None, 0.0),
        (True, 0.0),
    ],
)
def test_coerce_balance(raw, expected) -> None:
    assert coerce_balance(raw) == expected


def test_normalize_balance_handles_every_shape() -> None:
    assert normalize_balance({"data": {"total_credit": "15,000"}}) == 15000.0
    assert normalize_balance({"balance": 42}) == 42.0
    assert normalize_balance(99.9) == 99.9
    assert normalize_balance({"nothing": "here"}) == 0.0
