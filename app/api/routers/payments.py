from fastapi import APIRouter, Depends, Query, Request, status

from app.api.dependencies import get_principal, get_use_cases
from app.api.schemas.payments import CreatePaymentRequest, FeeSplitResponse, PaymentResponse
from app.application.interfaces.identity import Principal, Role
from app.config import Settings, get_settings
from app.domain.errors import NotAuthorizedError

router = APIRouter()


@router.post(
    "/bookings/{booking_id}/payment",
    response_model=PaymentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_payment(
    booking_id: str,
    payload: CreatePaymentRequest,
    principal: Principal = Depends(get_principal),
    use_cases=Depends(get_use_cases),
) -> PaymentResponse:
    booking = await use_cases["bookings"].get(booking_id)
    if principal.role != Role.STUDENT or principal.user_id != booking.student_id:
        raise NotAuthorizedError(principal.user_id, booking_id, "pagar")

    result = await use_cases["payments"].create_split_payment(
        booking_id=booking_id,
        gross_amount_minor_units=payload.amount_cents,
        instructor_payout_account_ref=payload.instructor_payout_account_ref,
    )
    return PaymentResponse(
        booking_id=booking_id,
        payment_intent_id=result.payment_intent_id,
        client_secret=result.client_secret,
        payment_status=result.booking.payment_status.value,
        split=FeeSplitResponse.from_split(
            result.split, use_cases["fee_calculator"].fee_rate, result.booking.currency_code
        ),
    )


@router.get("/fees/preview", response_model=FeeSplitResponse)
async def preview_fee_split(
    amount_cents: int = Query(...),
    settings: Settings = Depends(get_settings),
    use_cases=Depends(get_use_cases),
) -> FeeSplitResponse:
    split = use_cases["payments"].preview_split(amount_cents)
    return FeeSplitResponse.from_split(
        split, use_cases["fee_calculator"].fee_rate, settings.currency_code
    )


@router.post("/webhooks/stripe", status_code=status.HTTP_200_OK)
async def stripe_webhook(
    request: Request,
    use_cases=Depends(get_use_cases),
) -> dict:
    raw_body = await request.body()
    signature = request.headers.get("Stripe-Signature")
    event_type = await use_cases["handle_webhook"].execute(raw_body=raw_body, signature=signature)
    return {"received": True, "type": event_type}
