"""Persistence layer for saved simulation scenarios.

A saved scenario keeps the loan inputs that produced it and the headline
metrics of the run. The payment schedule itself is not stored: it is rebuilt
on demand by replaying the inputs through the simulator, which is
deterministic. SQLite is used by default for local development, but any
SQLAlchemy-compatible URL works.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import Column, Date, DateTime, Integer, String, create_engine, select
from sqlalchemy.orm import declarative_base, sessionmaker

from amortization_sim.data_models import (
    AmortizationSystem,
    ExtraPayment,
    LoanParameters,
    ReductionStrategy,
    SimulationResult,
)
from amortization_sim.simulator import simulate_loan

Base = declarative_base()

DEFAULT_DATABASE_URL = "sqlite:///saved_scenarios.sqlite3"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SavedScenarioModel(Base):
    __tablename__ = "saved_scenarios"

    id = Column(String(64), primary_key=True)
    user_token = Column(String(64), index=True, nullable=False)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    # Inputs; decimals are kept as text so they round-trip exactly
    system = Column(String(16), nullable=False)
    principal = Column(String(40), nullable=False)
    monthly_rate = Column(String(40), nullable=False)
    term_months = Column(Integer, nullable=False)
    start_date = Column(Date, nullable=False)
    extra_amount = Column(String(40), nullable=False, default="0")
    strategy = Column(String(32), nullable=True)

    # Headline metrics of the run
    actual_months = Column(Integer, nullable=False)
    months_eliminated = Column(Integer, nullable=False)
    total_interest = Column(String(40), nullable=False)
    interest_saved = Column(String(40), nullable=False)
    installment_reduction = Column(String(40), nullable=False)


def _from_result(user_token: str, scenario_id: str, name: str, result: SimulationResult) -> SavedScenarioModel:
    params = result.params
    extra = result.extra_payment
    return SavedScenarioModel(
        id=scenario_id,
        user_token=user_token,
        name=name,
        system=params.system.value,
        principal=str(params.principal),
        monthly_rate=str(params.monthly_rate),
        term_months=params.term_months,
        start_date=params.start_date,
        extra_amount=str(extra.amount) if extra else "0",
        strategy=extra.strategy.value if extra else None,
        actual_months=result.actual_months,
        months_eliminated=result.months_eliminated,
        total_interest=str(result.total_interest),
        interest_saved=str(result.interest_saved),
        installment_reduction=str(result.installment_reduction),
    )


def _inputs(row: SavedScenarioModel):
    params = LoanParameters(
        principal=Decimal(row.principal),
        monthly_rate=Decimal(row.monthly_rate),
        term_months=row.term_months,
        system=AmortizationSystem(row.system),
        start_date=row.start_date,
    )
    extra = None
    if row.strategy is not None:
        extra = ExtraPayment(Decimal(row.extra_amount), ReductionStrategy(row.strategy))
    return params, extra


def _describe(row: SavedScenarioModel) -> Dict[str, Any]:
    return {
        "id": row.id,
        "name": row.name,
        "created_at": row.created_at.isoformat(),
        "summary": {
            "system": row.system,
            "strategy": row.strategy,
            "principal": Decimal(row.principal),
            "monthly_rate": Decimal(row.monthly_rate),
            "term_months": row.term_months,
            "start_date": row.start_date.isoformat(),
            "extra_amount": Decimal(row.extra_amount),
            "actual_months": row.actual_months,
            "months_eliminated": row.months_eliminated,
            "total_interest": Decimal(row.total_interest),
            "interest_saved": Decimal(row.interest_saved),
            "installment_reduction": Decimal(row.installment_reduction),
        },
    }


class ScenarioStore:
    """Saved simulations, scoped per browser session token.

    Each user keeps at most ``max_per_user`` scenarios; saving beyond that
    drops the oldest ones. A falsy token reads as empty and writes nothing.
    """

    def __init__(self, url: str, *, max_per_user: int = 10) -> None:
        self._engine = create_engine(url, future=True)
        Base.metadata.create_all(self._engine)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False, future=True)
        self._max_per_user = max_per_user

    @staticmethod
    def _owned(user_token: str):
        return select(SavedScenarioModel).where(SavedScenarioModel.user_token == user_token)

    def list_scenarios(self, user_token: str) -> List[Dict[str, Any]]:
        if not user_token:
            return []
        query = self._owned(user_token).order_by(
            SavedScenarioModel.created_at.asc(), SavedScenarioModel.id.asc()
        )
        with self._session_factory() as session:
            return [_describe(row) for row in session.execute(query).scalars()]

    def save_result(self, user_token: str, scenario_id: str, name: str, result: SimulationResult) -> None:
        if not user_token:
            return
        with self._session_factory() as session:
            session.add(_from_result(user_token, scenario_id, name, result))
            session.flush()
            if self._max_per_user and self._max_per_user > 0:
                stale = session.execute(
                    self._owned(user_token)
                    .order_by(SavedScenarioModel.created_at.desc(), SavedScenarioModel.id.desc())
                    .offset(self._max_per_user)
                ).scalars().all()
                for row in stale:
                    session.delete(row)
            session.commit()

    def replay(self, user_token: str, scenario_id: str) -> Optional[SimulationResult]:
        """Re-run a saved scenario, or return ``None`` if the user does not own it."""
        if not user_token:
            return None
        with self._session_factory() as session:
            row = session.get(SavedScenarioModel, scenario_id)
            if row is None or row.user_token != user_token:
                return None
            params, extra = _inputs(row)
        return simulate_loan(params, extra)

    def remove_scenario(self, user_token: str, scenario_id: str) -> None:
        if not user_token:
            return
        with self._session_factory() as session:
            row = session.get(SavedScenarioModel, scenario_id)
            if row is not None and row.user_token == user_token:
                session.delete(row)
                session.commit()

    def clear_scenarios(self, user_token: str) -> None:
        if not user_token:
            return
        with self._session_factory() as session:
            for row in session.execute(self._owned(user_token)).scalars().all():
                session.delete(row)
            session.commit()


def create_store_from_env(url: Optional[str]) -> ScenarioStore:
    return ScenarioStore(url or DEFAULT_DATABASE_URL)
