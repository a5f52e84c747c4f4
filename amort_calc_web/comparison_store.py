"""Persistence layer for saved loan scenarios.

The web app keeps the scenarios a user adds to the comparison panel in a
database rather than in the session cookie, since a full schedule is far too
large for a cookie. Each row keeps the form inputs (so the scenario can be
reloaded into the form), the summary and the serialized schedule. SQLite is
the default; any SQLAlchemy URL works.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import Column, DateTime, String, Text, create_engine, select
from sqlalchemy.orm import declarative_base, sessionmaker

logger = logging.getLogger(__name__)

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SavedScenarioModel(Base):
    __tablename__ = "saved_scenarios"

    id = Column(String(64), primary_key=True)
    user_token = Column(String(64), index=True, nullable=False)
    name = Column(String(255), nullable=False)
    loan_type = Column(String(16), nullable=False)
    inputs_json = Column(Text, nullable=False)
    summary_json = Column(Text, nullable=False)
    schedule_json = Column(Text, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)


class ComparisonStore:
    """Database-backed scenario store, capped at ``max_per_user`` rows per user."""

    def __init__(self, url: str, *, max_per_user: int = 10) -> None:
        self._engine = create_engine(url, future=True)
        Base.metadata.create_all(self._engine)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False, future=True)
        self._max_per_user = max_per_user

    def list_scenarios(self, user_token: str) -> List[Dict[str, Any]]:
        if not user_token:
            return []
        with self._session_factory() as session:
            rows: Iterable[SavedScenarioModel] = session.execute(
                select(SavedScenarioModel)
                .where(SavedScenarioModel.user_token == user_token)
                .order_by(SavedScenarioModel.created_at.asc())
            ).scalars()
            return [self._to_dict(row) for row in rows]

    def get_scenario(self, user_token: str, scenario_id: str) -> Optional[Dict[str, Any]]:
        if not user_token or not scenario_id:
            return None
        with self._session_factory() as session:
            row = session.get(SavedScenarioModel, scenario_id)
            if row is None or row.user_token != user_token:
                return None
            return self._to_dict(row)

    def add_scenario(
        self,
        user_token: str,
        scenario_id: str,
        name: str,
        loan_type: str,
        inputs: Dict[str, str],
        summary: Dict[str, Any],
        schedule: List[Dict[str, Any]],
    ) -> None:
        if not user_token:
            return
        row = SavedScenarioModel(
            id=scenario_id,
            user_token=user_token,
            name=name,
            loan_type=loan_type,
            inputs_json=json.dumps(inputs),
            summary_json=json.dumps(summary),
            schedule_json=json.dumps(schedule),
        )
        with self._session_factory() as session:
            session.add(row)
            session.commit()
        logger.debug("Saved scenario %s (%s) for %s", scenario_id, loan_type, user_token)
        self._trim_user(user_token)

    def remove_scenario(self, user_token: str, scenario_id: str) -> None:
        if not user_token:
            return
        with self._session_factory() as session:
            row = session.get(SavedScenarioModel, scenario_id)
            if row and row.user_token == user_token:
                session.delete(row)
                session.commit()

    def clear_scenarios(self, user_token: str) -> None:
        if not user_token:
            return
        with self._session_factory() as session:
            session.execute(
                SavedScenarioModel.__table__.delete().where(
                    SavedScenarioModel.user_token == user_token
                )
            )
            session.commit()

    def _trim_user(self, user_token: str) -> None:
        if not self._max_per_user or self._max_per_user < 0:
            return
        with self._session_factory() as session:
            rows = session.execute(
                select(SavedScenarioModel)
                .where(SavedScenarioModel.user_token == user_token)
                .order_by(SavedScenarioModel.created_at.desc())
            ).scalars().all()
            if len(rows) <= self._max_per_user:
                return
            for row in rows[self._max_per_user :]:
                session.delete(row)
            session.commit()
            logger.debug("Trimmed %d old scenarios for %s", len(rows) - self._max_per_user, user_token)

    @staticmethod
    def _to_dict(row: SavedScenarioModel) -> Dict[str, Any]:
        return {
            "id": row.id,
            "name": row.name,
            "loan_type": row.loan_type,
            "inputs": json.loads(row.inputs_json),
            "summary": json.loads(row.summary_json),
            "schedule": json.loads(row.schedule_json),
            "created_at": row.created_at.isoformat(),
        }


def create_store_from_env(url: str | None) -> ComparisonStore:
    return ComparisonStore(url or "sqlite:///comparison_data.sqlite3")
