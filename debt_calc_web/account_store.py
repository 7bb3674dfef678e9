"""Persistence layer for tracked debt accounts and their loan events.

The store keeps accounts in any SQLAlchemy-compatible database (SQLite for
local development, PostgreSQL/MySQL in deployments). Accounts are owned by an
opaque user token; every read and write is scoped to that owner. Balance and
payoff date are derived by ``debt_calc.accounts`` before they are written.
Deleting an account only marks it inactive.
"""

from __future__ import annotations

import json
import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Numeric,
    String,
    Text,
    create_engine,
    select,
)
from sqlalchemy.orm import declarative_base, sessionmaker

from debt_calc.accounts import deactivate_account, open_account, revise_account
from debt_calc.data_models import TrackedAccount
from debt_calc.events import LoanEvent, event_from_payload, event_to_payload, validate_event
from debt_calc.validation import ValidationError

logger = logging.getLogger(__name__)

Base = declarative_base()

MONEY = Numeric(18, 6)


class AccountNotFound(LookupError):
    """No active account with that id belongs to the user."""

    def __init__(self, account_id: str) -> None:
        self.account_id = account_id
        super().__init__(f"Debt account {account_id} not found")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DebtAccountModel(Base):
    __tablename__ = "debt_accounts"

    id = Column(String(64), primary_key=True)
    user_id = Column(String(64), index=True, nullable=False)
    name = Column(String(255), nullable=False)
    type = Column(String(32), nullable=False)
    loan_amount = Column(MONEY, nullable=False)
    current_balance = Column(MONEY, nullable=False)
    monthly_payment = Column(MONEY, nullable=False)
    minimum_payment = Column(MONEY, nullable=False)
    interest_rate = Column(MONEY, nullable=False)
    extra_payment = Column(MONEY, nullable=False, default=0)
    start_date = Column(Date, nullable=False, index=True)
    payoff_date = Column(Date, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False, index=True)


class LoanEventModel(Base):
    __tablename__ = "loan_events"

    id = Column(String(64), primary_key=True)
    debt_account_id = Column(String(64), ForeignKey("debt_accounts.id"), index=True, nullable=False)
    user_id = Column(String(64), index=True, nullable=False)
    event_type = Column(String(32), nullable=False)
    event_data = Column(Text, nullable=False)
    event_date = Column(Date, nullable=False)
    notes = Column(Text)
    created_at = Column(DateTime, default=_utcnow, nullable=False)


ACCOUNT_COLUMNS = (
    "name",
    "type",
    "loan_amount",
    "current_balance",
    "monthly_payment",
    "minimum_payment",
    "interest_rate",
    "extra_payment",
    "start_date",
    "payoff_date",
    "is_active",
)


class AccountStore:
    """Database-backed tracked-account store."""

    def __init__(self, url: str) -> None:
        self._engine = create_engine(url, future=True)
        Base.metadata.create_all(self._engine)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False, future=True)

    def list_accounts(self, user_token: str) -> List[TrackedAccount]:
        """Active accounts of ``user_token``, newest first."""
        if not user_token:
            return []
        with self._session_factory() as session:
            rows = session.execute(
                select(DebtAccountModel)
                .where(DebtAccountModel.user_id == user_token)
                .where(DebtAccountModel.is_active.is_(True))
                .order_by(DebtAccountModel.created_at.desc())
            ).scalars()
            return [self._to_account(row) for row in rows]

    def get_account(self, user_token: str, account_id: str) -> Optional[TrackedAccount]:
        with self._session_factory() as session:
            row = self._owned_row(session, user_token, account_id)
            return self._to_account(row) if row else None

    def create_account(self, user_token: str, data: Dict[str, Any], as_of: date) -> TrackedAccount:
        """Validate ``data`` and persist a new account.

        ``data`` holds the keyword arguments of ``open_account`` as typed
        values (``Decimal`` money, ``date`` start date).
        Raises ``ValidationError`` when the terms are rejected.
        """
        if not user_token:
            raise AccountNotFound("No user")
        account = open_account(user_id=user_token, as_of=as_of, **data)
        row = DebtAccountModel(id=account.id, user_id=user_token)
        self._copy_to_row(account, row)
        with self._session_factory() as session:
            session.add(row)
            session.commit()
            logger.info("Created debt account %s for user %s", account.id, user_token)
            return self._to_account(row)

    def update_account(
        self, user_token: str, account_id: str, updates: Dict[str, Any], as_of: date
    ) -> TrackedAccount:
        """Apply ``updates``; loan term changes recompute balance and payoff date."""
        with self._session_factory() as session:
            row = self._owned_row(session, user_token, account_id)
            if row is None:
                raise AccountNotFound(account_id)
            revised = revise_account(self._to_account(row), updates, as_of)
            self._copy_to_row(revised, row)
            session.commit()
            logger.info("Updated debt account %s (%s)", account_id, ", ".join(sorted(updates)))
            return self._to_account(row)

    def deactivate_account(self, user_token: str, account_id: str) -> None:
        with self._session_factory() as session:
            row = self._owned_row(session, user_token, account_id)
            if row is None:
                raise AccountNotFound(account_id)
            row.is_active = deactivate_account(self._to_account(row)).is_active
            session.commit()
            logger.info("Deactivated debt account %s", account_id)

    def add_event(
        self,
        user_token: str,
        account_id: str,
        event_type: str,
        payload: Dict[str, Any],
        event_date: date,
        as_of: date,
        notes: Optional[str] = None,
    ) -> LoanEvent:
        """Record a loan event on an active account owned by ``user_token``."""
        with self._session_factory() as session:
            row = self._owned_row(session, user_token, account_id)
            if row is None:
                raise AccountNotFound(account_id)
            try:
                data = event_from_payload(event_type, payload)
            except ValueError as exc:
                raise ValidationError({"event_data": str(exc)}) from exc
            event = LoanEvent(
                account_id=account_id,
                event_date=event_date,
                data=data,
                notes=notes or None,
                id=uuid4().hex,
            )
            errors = validate_event(event, Decimal(row.current_balance), as_of)
            if errors:
                raise ValidationError(errors)
            session.add(
                LoanEventModel(
                    id=event.id,
                    debt_account_id=account_id,
                    user_id=user_token,
                    event_type=event.event_type,
                    event_data=json.dumps(event_to_payload(data)),
                    event_date=event_date,
                    notes=event.notes,
                )
            )
            session.commit()
            logger.info("Recorded %s event on account %s", event.event_type, account_id)
            return event

    def list_events(self, user_token: str, account_id: str) -> List[LoanEvent]:
        """Events of one account, most recent event date first."""
        with self._session_factory() as session:
            if self._owned_row(session, user_token, account_id) is None:
                raise AccountNotFound(account_id)
            rows = session.execute(
                select(LoanEventModel)
                .where(LoanEventModel.debt_account_id == account_id)
                .order_by(LoanEventModel.event_date.desc(), LoanEventModel.created_at.desc())
            ).scalars()
            return [
                LoanEvent(
                    account_id=row.debt_account_id,
                    event_date=row.event_date,
                    data=event_from_payload(row.event_type, json.loads(row.event_data)),
                    notes=row.notes,
                    id=row.id,
                )
                for row in rows
            ]

    @staticmethod
    def _owned_row(session, user_token: str, account_id: str) -> Optional[DebtAccountModel]:
        if not user_token or not account_id:
            return None
        row = session.get(DebtAccountModel, account_id)
        if row is None or row.user_id != user_token or not row.is_active:
            return None
        return row

    @staticmethod
    def _copy_to_row(account: TrackedAccount, row: DebtAccountModel) -> None:
        for column in ACCOUNT_COLUMNS:
            setattr(row, column, getattr(account, column))

    @staticmethod
    def _to_account(row: DebtAccountModel) -> TrackedAccount:
        return TrackedAccount(
            id=row.id,
            user_id=row.user_id,
            name=row.name,
            type=row.type,
            loan_amount=Decimal(row.loan_amount),
            current_balance=Decimal(row.current_balance),
            monthly_payment=Decimal(row.monthly_payment),
            minimum_payment=Decimal(row.minimum_payment),
            interest_rate=Decimal(row.interest_rate),
            extra_payment=Decimal(row.extra_payment if row.extra_payment is not None else 0),
            start_date=row.start_date,
            payoff_date=row.payoff_date,
            is_active=bool(row.is_active),
            created_at=row.created_at,
        )


def create_store_from_env(url: str | None) -> AccountStore:
    return AccountStore(url or "sqlite:///debt_accounts.sqlite3")
