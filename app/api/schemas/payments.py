from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictInt

from app.domain.value_objects.fee_split import FeeSplit


class CreatePaymentRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    amount_cents: StrictInt
    instructor_payout_account_ref: str | None = None


class FeeSplitResponse(BaseModel):
    gross_amount: int
    platform_fee_amount: int
    instructor_net_amount: int
    fee_rate: Decimal
    currency_code: str

    @classmethod
    def from_split(cls, split: FeeSplit, fee_rate: Decimal, currency_code: str) -> "FeeSplitResponse":
        return cls(
            gross_amount=split.gross_amount,
            platform_fee_amount=split.platform_fee_amount,
            instructor_net_amount=split.instructor_net_amount,
            fee_rate=fee_rate,
            currency_code=currency_code,
        )


class PaymentResponse(BaseModel):
    booking_id: str
    payment_intent_id: str
    client_secret: str
    payment_status: str
    split: FeeSplitResponse


class StripeWebhookEnvelope(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str | None = None
    type: str
    data: dict[str, Any] = Field(default_factory=dict)
    account: str | None = None
    livemode: bool | None = None
    created: int | None = None

    def data_object(self) -> dict[str, Any]:
        data_obj = self.data.get("object", {})
        return data_obj if isinstance(data_obj, dict) else {}
