import json

import pytest

from app.domain.errors import MalformedTokenError
from app.domain.value_objects.check_in_token import CheckInToken


def test_encode_uses_client_keys():
    token = CheckInToken(booking_id="booking-0001", issued_at_epoch_millis=1749574800000)

    assert json.loads(token.encode()) == {
        "bookingId": "booking-0001",
        "action": "complete",
        "timestamp": 1749574800000,
    }


def test_decode_client_payload():
    raw = '{"bookingId":"booking-0001","action":"complete","timestamp":1749574800000}'

    token = CheckInToken.decode(raw)

    assert token.booking_id == "booking-0001"
    assert token.issued_at_epoch_millis == 1749574800000
    assert token.signature is None


@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        "",
        "[1, 2]",
        '{"action":"complete","timestamp":1}',
        '{"bookingId":"b","timestamp":1}',
        '{"bookingId":"b","action":"cancel","timestamp":1}',
        '{"bookingId":"b","action":"complete"}',
        '{"bookingId":"b","action":"complete","timestamp":"1"}',
        '{"bookingId":"b","action":"complete","timestamp":true}',
        '{"bookingId":"b","action":"complete","timestamp":1,"sig":5}',
    ],
)
def test_decode_rejects_malformed_payloads(raw):
    with pytest.raises(MalformedTokenError):
        CheckInToken.decode(raw)


def test_signed_token_verifies_with_same_secret():
    token = CheckInToken(booking_id="booking-0001", issued_at_epoch_millis=1000).sign("s3cret")
    decoded = CheckInToken.decode(token.encode())

    assert decoded.has_valid_signature("s3cret")
    assert not decoded.has_valid_signature("other")


def test_tampered_booking_id_invalidates_signature():
    token = CheckInToken(booking_id="booking-0001", issued_at_epoch_millis=1000).sign("s3cret")
    payload = json.loads(token.encode())
    payload["bookingId"] = "booking-0002"

    assert not CheckInToken.decode(json.dumps(payload)).has_valid_signature("s3cret")


def test_unsigned_token_never_has_valid_signature():
    token = CheckInToken(booking_id="booking-0001", issued_at_epoch_millis=1000)
    assert not token.has_valid_signature("s3cret")


def test_age_in_seconds():
    token = CheckInToken(booking_id="b", issued_at_epoch_millis=1_000)
    assert token.age_seconds(301_000) == 300
