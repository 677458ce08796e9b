from dataclasses import replace

from app.application.interfaces.payout_account_repo import PayoutAccountRepo
from app.domain.entities.payout_account import PayoutAccount


class InMemoryPayoutAccountRepo(PayoutAccountRepo):
    def __init__(self) -> None:
        self.accounts: dict[str, PayoutAccount] = {}

    def save(self, account: PayoutAccount) -> None:
        self.accounts[account.instructor_id] = replace(account)

    async def get_instructor_payout_account(self, instructor_id: str) -> PayoutAccount | None:
        account = self.accounts.get(instructor_id)
        return replace(account) if account else None

    async def update_onboarding_status(
        self,
        account_ref: str,
        onboarding_complete: bool,
    ) -> PayoutAccount | None:
        for instructor_id, account in self.accounts.items():
            if account.account_ref == account_ref:
                updated = replace(account, onboarding_complete=onboarding_complete)
                self.accounts[instructor_id] = updated
                return replace(updated)
        return None
