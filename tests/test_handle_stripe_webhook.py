import json

import pytest

from app.application.use_cases.handle_stripe_webhook import HandleStripeWebhookUseCase
from app.domain.constants import EVENT_REFUND_REQUESTED
from app.domain.entities.booking import BookingPaymentStatus, BookingStatus, CancelledBy
from app.domain.entities.payout_account import PayoutAccount
from app.domain.errors import BookingNotFoundError, InvalidWebhookEventError
from tests.conftest import INSTRUCTOR_ID, LESSON_PRICE_CENTS, PAYOUT_ACCOUNT_REF


@pytest.fixture
def handle_webhook(orchestrator, stripe_gateway) -> HandleStripeWebhookUseCase:
    return HandleStripeWebhookUseCase(
        orchestrator=orchestrator,
        stripe_gateway=stripe_gateway,
        stripe_webhook_secret=None,
    )


def _event(event_type: str, data_object: dict) -> bytes:
    return json.dumps(
        {"id": "evt_test", "type": event_type, "data": {"object": data_object}}
    ).encode()


async def test_payment_succeeded_confirms_booking(handle_webhook, orchestrator, pending_booking, booking_repo):
    payment = await orchestrator.create_split_payment(pending_booking.id, LESSON_PRICE_CENTS)

    handled = await handle_webhook.execute(
        _event("payment_intent.succeeded", {"id": payment.payment_intent_id}), signature=None
    )

    assert handled == "payment_intent.succeeded"
    stored = booking_repo.bookings[pending_booking.id]
    assert stored.status == BookingStatus.CONFIRMED
    assert stored.payment_status == BookingPaymentStatus.PAID


async def test_replayed_success_is_idempotent(handle_webhook, orchestrator, pending_booking, outbox_repo):
    payment = await orchestrator.create_split_payment(pending_booking.id, LESSON_PRICE_CENTS)
    body = _event("payment_intent.succeeded", {"id": payment.payment_intent_id})

    await handle_webhook.execute(body, signature=None)
    await handle_webhook.execute(body, signature=None)

    assert len(outbox_repo.events) == 1


async def test_payment_failed_marks_booking(handle_webhook, orchestrator, pending_booking, booking_repo):
    payment = await orchestrator.create_split_payment(pending_booking.id, LESSON_PRICE_CENTS)

    await handle_webhook.execute(
        _event("payment_intent.payment_failed", {"id": payment.payment_intent_id}), signature=None
    )

    assert booking_repo.bookings[pending_booking.id].payment_status == BookingPaymentStatus.FAILED


async def test_account_updated_completes_onboarding(handle_webhook, payout_account_repo):
    payout_account_repo.save(PayoutAccount(instructor_id="instr-9", account_ref="acct_new"))

    await handle_webhook.execute(
        _event(
            "account.updated",
            {
                "id": "acct_new",
                "charges_enabled": True,
                "payouts_enabled": True,
                "details_submitted": True,
            },
        ),
        signature=None,
    )

    assert payout_account_repo.accounts["instr-9"].onboarding_complete is True


async def test_unhandled_event_is_ignored(handle_webhook, booking_repo):
    handled = await handle_webhook.execute(
        _event("customer.created", {"id": "cus_1"}), signature=None
    )

    assert handled == "customer.created"
    assert booking_repo.bookings == {}

async def test_success_resolved_from_metadata(handle_webhook, pending_booking, booking_repo):
    await handle_webhook.execute(
        _event(
            "payment_intent.succeeded",
            {"id": "pi_lost", "metadata": {"booking_id": pending_booking.id}},
        ),
        signature=None,
    )

    stored = booking_repo.bookings[pending_booking.id]
    assert stored.status == BookingStatus.CONFIRMED
    assert stored.payment_intent_id == "pi_lost"


async def test_success_after_cancellation_requests_refund(
    handle_webhook, orchestrator, state_machine, pending_booking, student, outbox_repo
):
    payment = await orchestrator.create_split_payment(pending_booking.id, LESSON_PRICE_CENTS)
    await state_machine.cancel(pending_booking.id, student)

    handled = await handle_webhook.execute(
        _event("payment_intent.succeeded", {"id": payment.payment_intent_id}), signature=None
    )

    assert handled == "payment_intent.succeeded"
    [refund] = outbox_repo.of_type(EVENT_REFUND_REQUESTED)
    assert refund.payload["reason"] == "captured_after_cancellation"


async def test_charge_refunded_cancels_booking(handle_webhook, confirmed_booking, booking_repo):
    await handle_webhook.execute(
        _event(
            "charge.refunded",
            {
                "id": "ch_1",
                "payment_intent": confirmed_booking.payment_intent_id,
                "amount": LESSON_PRICE_CENTS,
                "amount_refunded": LESSON_PRICE_CENTS,
            },
        ),
        signature=None,
    )

    stored = booking_repo.bookings[confirmed_booking.id]
    assert stored.status == BookingStatus.CANCELLED
    assert stored.payment_status == BookingPaymentStatus.REFUNDED
    assert stored.cancelled_by == CancelledBy.SYSTEM


async def test_partial_charge_refund_keeps_booking(handle_webhook, confirmed_booking, booking_repo):
    await handle_webhook.execute(
        _event(
            "charge.refunded",
            {
                "id": "ch_1",
                "payment_intent": confirmed_booking.payment_intent_id,
                "amount": LESSON_PRICE_CENTS,
                "amount_refunded": 2000,
            },
        ),
        signature=None,
    )

    assert booking_repo.bookings[confirmed_booking.id].status == BookingStatus.CONFIRMED


async def test_account_deauthorized_cancels_pending(
    handle_webhook, pending_booking, booking_repo, payout_account_repo
):
    body = json.dumps(
        {
            "id": "evt_deauth",
            "type": "account.application.deauthorized",
            "account": PAYOUT_ACCOUNT_REF,
            "data": {"object": {"id": "ca_platform_app"}},
        }
    ).encode()

    handled = await handle_webhook.execute(body, signature=None)

    assert handled == "account.application.deauthorized"
    stored = booking_repo.bookings[pending_booking.id]
    assert stored.status == BookingStatus.CANCELLED
    assert stored.cancelled_by == CancelledBy.SYSTEM
    assert payout_account_repo.accounts[INSTRUCTOR_ID].onboarding_complete is False



async def test_success_for_unknown_intent(handle_webhook):
    with pytest.raises(BookingNotFoundError):
        await handle_webhook.execute(
            _event("payment_intent.succeeded", {"id": "pi_unknown"}), signature=None
        )


@pytest.mark.parametrize(
    "body",
    [
        b"",
        b"{not json",
        json.dumps({"id": "evt_1", "data": {"object": {"id": "pi_1"}}}).encode(),
        json.dumps({"id": "evt_1", "type": "payment_intent.succeeded"}).encode(),
        _event("payment_intent.succeeded", {"status": "succeeded"}),
        _event("account.updated", {"charges_enabled": True}),
        _event("charge.refunded", {"id": "ch_1", "amount": 8000, "amount_refunded": 8000}),
        _event("charge.refunded", {"payment_intent": "pi_1", "amount": "8000"}),
        _event("charge.refunded", {"payment_intent": "pi_1", "amount": 8000, "amount_refunded": None}),
        _event("account.application.deauthorized", {"name": "Auto Escola"}),
    ],
)
async def test_invalid_events(handle_webhook, body):
    with pytest.raises(InvalidWebhookEventError):
        await handle_webhook.execute(body, signature=None)
