from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush
from enums.payment_method import PaymentMethod
from enums.payment_status import PaymentStatus
from models.payment_transaction import PaymentTransaction, PaymentTransactionDTO


class PaymentTransactionRepository:
    @staticmethod
    async def create(transaction_dto: PaymentTransactionDTO, session: AsyncSession | Session) -> PaymentTransactionDTO:
        transaction = PaymentTransaction(**transaction_dto.model_dump(exclude_none=True))
        session.add(transaction)
        await session_flush(session)
        return PaymentTransactionDTO.model_validate(transaction, from_attributes=True)

    @staticmethod
    async def get_by_reference(reference: str, session: AsyncSession | Session) -> PaymentTransactionDTO | None:
        stmt = select(PaymentTransaction).execution_options(populate_existing=True).where(PaymentTransaction.reference == reference)
        transaction = await session_execute(stmt, session)
        transaction = transaction.scalar()
        if transaction is not None:
            return PaymentTransactionDTO.model_validate(transaction, from_attributes=True)
        return None

    @staticmethod
    async def get_by_order_id(order_id: str, session: AsyncSession | Session) -> list[PaymentTransactionDTO]:
        stmt = select(PaymentTransaction).execution_options(populate_existing=True).where(PaymentTransaction.order_id == order_id).order_by(
            PaymentTransaction.created_at.desc()
        )
        transactions = await session_execute(stmt, session)
        return [PaymentTransactionDTO.model_validate(transaction, from_attributes=True)
                for transaction in transactions.scalars().all()]

    @staticmethod
    async def get_latest_initialized(order_id: str, provider: PaymentMethod,
                                     session: AsyncSession | Session) -> PaymentTransactionDTO | None:
        stmt = select(PaymentTransaction).execution_options(populate_existing=True).where(
            PaymentTransaction.order_id == order_id,
            PaymentTransaction.provider == provider,
            PaymentTransaction.status == PaymentStatus.INITIALIZED
        ).order_by(PaymentTransaction.created_at.desc()).limit(1)
        transaction = await session_execute(stmt, session)
        transaction = transaction.scalar()
        if transaction is not None:
            return PaymentTransactionDTO.model_validate(transaction, from_attributes=True)
        return None

    @staticmethod
    async def mark_paid_if_initialized(reference: str, paid_at: datetime, session: AsyncSession | Session,
                                       raw_verify_payload: dict | None = None) -> bool:
        """
        INITIALIZED -> PAID, exactly once.

        Returns False when the transaction was not INITIALIZED any more
        (a concurrent confirmation already won).
        """
        values = {"status": PaymentStatus.PAID, "paid_at": paid_at}
        if raw_verify_payload is not None:
            values["raw_verify_payload"] = raw_verify_payload
        stmt = (
            update(PaymentTransaction)
            .where(
                PaymentTransaction.reference == reference,
                PaymentTransaction.status == PaymentStatus.INITIALIZED
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await session_execute(stmt, session)
        return result.rowcount == 1

    @staticmethod
    async def store_init_payload(reference: str, payload: dict, session: AsyncSession | Session) -> None:
        stmt = (
            update(PaymentTransaction)
            .where(PaymentTransaction.reference == reference)
            .values(raw_init_payload=payload)
            .execution_options(synchronize_session=False)
        )
        await session_execute(stmt, session)

    @staticmethod
    async def store_verify_payload(reference: str, payload: dict, session: AsyncSession | Session) -> None:
        stmt = (
            update(PaymentTransaction)
            .where(PaymentTransaction.reference == reference)
            .values(raw_verify_payload=payload)
            .execution_options(synchronize_session=False)
        )
        await session_execute(stmt, session)
