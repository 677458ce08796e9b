from app.domain.entities.payout_account import PayoutAccount


class PayoutAccountRepo:
    async def get_instructor_payout_account(self, instructor_id: str) -> PayoutAccount | None:
        raise NotImplementedError

    async def update_onboarding_status(
        self,
        account_ref: str,
        onboarding_complete: bool,
    ) -> PayoutAccount | None:
        raise NotImplementedError
