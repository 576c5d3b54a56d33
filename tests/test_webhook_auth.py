"""Notification authenticator: only genuine, fresh Stripe payloads get through."""

import time

import pytest

from app.errors import AuthenticationError
from app.services.webhook_service import authenticate
from conftest import WEBHOOK_SECRET, intent_event, sign


def test_valid_signature_yields_typed_event():
    payload = intent_event("pi_9", amount=2500, platform=250, beneficiary=2250)
    event = authenticate(payload.encode(), sign(payload), WEBHOOK_SECRET)
    assert event.event_type == "payment_succeeded"
    assert event.intent_id == "pi_9"
    assert event.amount == 2500
    assert event.currency == "usd"
    assert event.metadata["platform_share_cents"] == "250"


def test_tampered_body_rejected():
    payload = intent_event(platform=1000, beneficiary=9000)
    header = sign(payload)
    tampered = payload.replace('"beneficiary_share_cents": "9000"', '"beneficiary_share_cents": "9900"')
    assert tampered != payload
    with pytest.raises(AuthenticationError):
        authenticate(tampered.encode(), header, WEBHOOK_SECRET)


def test_wrong_secret_rejected():
    payload = intent_event()
    with pytest.raises(AuthenticationError):
        authenticate(payload.encode(), sign(payload, secret="whsec_other"), WEBHOOK_SECRET)


def test_stale_timestamp_rejected():
    payload = intent_event()
    header = sign(payload, timestamp=int(time.time()) - 3600)
    with pytest.raises(AuthenticationError):
        authenticate(payload.encode(), header, WEBHOOK_SECRET, tolerance=300)


def test_future_timestamp_rejected():
    payload = intent_event()
    header = sign(payload, timestamp=int(time.time()) + 3600)
    with pytest.raises(AuthenticationError):
        authenticate(payload.encode(), header, WEBHOOK_SECRET, tolerance=300)


def test_timestamp_inside_window_accepted():
    payload = intent_event()
    header = sign(payload, timestamp=int(time.time()) - 60)
    assert authenticate(payload.encode(), header, WEBHOOK_SECRET, tolerance=300).intent_id


@pytest.mark.parametrize(
    "header",
    [None, "", "garbage", "t=abc,v1=deadbeef", "v1=deadbeef", "t=1700000000"],
)
def test_malformed_headers_rejected(header):
    payload = intent_event()
    with pytest.raises(AuthenticationError):
        authenticate(payload.encode(), header, WEBHOOK_SECRET)


def test_missing_secret_rejected():
    payload = intent_event()
    with pytest.raises(AuthenticationError):
        authenticate(payload.encode(), sign(payload), "")


def test_non_utf8_body_rejected():
    body = b"\xff\xfe{}"
    with pytest.raises(AuthenticationError):
        authenticate(body, "t=1,v1=00", WEBHOOK_SECRET)


@pytest.mark.parametrize(
    "payload",
    [
        "not json",
        "[]",
        '{"type": "payment_intent.succeeded", "data": {"object": {"id": "pi_1"}}}',
        '{"id": "evt_1", "data": {"object": {"id": "pi_1"}}}',
        '{"id": "evt_1", "type": "payment_intent.succeeded", "data": {}}',
        '{"id": "evt_1", "type": "payment_intent.succeeded", "data": {"object": {}}}',
    ],
)
def test_signed_but_malformed_event_rejected(payload):
    with pytest.raises(AuthenticationError):
        authenticate(payload.encode(), sign(payload), WEBHOOK_SECRET)


def test_non_intent_event_passes_through_without_intent():
    payload = '{"id": "evt_2", "type": "customer.created", "data": {"object": {"id": "cus_1"}}}'
    event = authenticate(payload.encode(), sign(payload), WEBHOOK_SECRET)
    assert event.event_type == "customer.created"
    assert event.intent_id is None


@pytest.mark.parametrize("tolerance", [0, -5])
def test_non_positive_tolerance_never_disables_replay_check(tolerance):
    payload = intent_event()
    week_old = sign(payload, timestamp=int(time.time()) - 7 * 24 * 3600)
    with pytest.raises(AuthenticationError):
        authenticate(payload.encode(), week_old, WEBHOOK_SECRET, tolerance=tolerance)
