from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.interfaces.payout_account_repo import PayoutAccountRepo
from app.domain.entities.payout_account import PayoutAccount
from app.infrastructure.db.tables import instructor_payout_accounts


class PayoutAccountRepoSQL(PayoutAccountRepo):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_instructor_payout_account(self, instructor_id: str) -> PayoutAccount | None:
        stmt = (
            select(instructor_payout_accounts)
            .where(instructor_payout_accounts.c.instructor_id == instructor_id)
            .limit(1)
        )
        result = await self._session.execute(stmt)
        row = result.mappings().first()
        if not row:
            return None
        return PayoutAccount(
            instructor_id=row["instructor_id"],
            account_ref=row["account_ref"],
            onboarding_complete=bool(row["onboarding_complete"]),
        )

    async def update_onboarding_status(
        self,
        account_ref: str,
        onboarding_complete: bool,
    ) -> PayoutAccount | None:
        stmt = (
            update(instructor_payout_accounts)
            .where(instructor_payout_accounts.c.account_ref == account_ref)
            .values(
                onboarding_complete=onboarding_complete,
                updated_at=datetime.now(timezone.utc),
            )
            .returning(instructor_payout_accounts.c.instructor_id)
        )
        result = await self._session.execute(stmt)
        instructor_id = result.scalar()
        if instructor_id is None:
            return None
        return PayoutAccount(
            instructor_id=instructor_id,
            account_ref=account_ref,
            onboarding_complete=onboarding_complete,
        )
