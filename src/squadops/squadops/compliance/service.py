from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import local_today, utc_now
from ..common.time_window import inclusive_day_count, week_bounds
from ..core.constants import DEFAULT_PENALTY_PER_SEVERITY
from ..core.enums import PeriodType
from ..core.exceptions import Forbidden, NotFound
from ..leaves.repository import LeaveRepository
from ..squads.model import Squad
from ..squads.repository import SquadRepository
from ..users.model import User
from ..users.policy import is_admin, leads_squad
from . import engine
from .model import ComplianceReport, ComplianceScore, Period
from .repository import ComplianceRepository
from .rules.factory import RuleEvaluatorFactory

logger = logging.getLogger(__name__)


class ComplianceService:
    def __init__(
        self,
        compliance: ComplianceRepository,
        attendance: AttendanceRepository,
        leaves: LeaveRepository,
        squads: SquadRepository,
        *,
        penalty_per_severity: float = DEFAULT_PENALTY_PER_SEVERITY,
        factory: Optional[RuleEvaluatorFactory] = None,
    ):
        self._compliance = compliance
        self._attendance = attendance
        self._leaves = leaves
        self._squads = squads
        self._penalty = float(penalty_per_severity)
        self._factory = factory or RuleEvaluatorFactory()

    def _get_squad(self, squad_id: int) -> Squad:
        squad = self._squads.get_by_id(int(squad_id))
        if not squad:
            raise NotFound("Squad not found", details={"squad_id": squad_id})
        return squad

    def _score(self, squad: Squad, period: Period, now: datetime | None = None) -> ComplianceReport:
        inclusive_day_count(period.start, period.end)
        as_of = local_today(now or utc_now(), squad.timezone)
        rules = self._compliance.rules_for_squad(squad.squad_id)
        members = self._squads.active_members(squad.squad_id)
        records = self._attendance.list_for_squad_between(
            squad_id=squad.squad_id,
            start_date=period.start,
            end_date=period.end,
        )
        leaves = self._leaves.list_approved_overlapping(
            squad_id=squad.squad_id,
            start_date=period.start,
            end_date=period.end,
        )

        result = engine.evaluate(
            rules,
            period,
            [m.user_id for m in members],
            records,
            leaves,
            timezone=squad.timezone,
            workdays=squad.workdays,
            penalty_per_severity=self._penalty,
            factory=self._factory,
            as_of=as_of,
        )
        logger.info(
            "Scored squad %s for %s..%s: %s (%s violations)",
            squad.squad_id,
            period.start,
            period.end,
            result.score,
            len(result.violations),
        )
        return ComplianceReport(squad_id=squad.squad_id, period=period, result=result)

    def score_period(
        self,
        squad_id: int,
        *,
        start_date: date,
        end_date: date,
        period_type: PeriodType = PeriodType.WEEKLY,
        sprint_id: Optional[int] = None,
        now: datetime | None = None,
    ) -> ComplianceReport:
        squad = self._get_squad(squad_id)
        period = Period(start=start_date, end=end_date, period_type=period_type, sprint_id=sprint_id)
        return self._score(squad, period, now)

    def score_week(self, squad_id: int, day: date, *, now: datetime | None = None) -> ComplianceReport:
        start, end = week_bounds(day)
        return self.score_period(squad_id, start_date=start, end_date=end, now=now)

    def score_sprint(
        self,
        squad_id: int,
        sprint_id: Optional[int] = None,
        *,
        now: datetime | None = None,
    ) -> ComplianceReport:
        squad = self._get_squad(squad_id)
        if sprint_id is None:
            sprint = self._squads.active_sprint(squad.squad_id)
        else:
            sprint = self._squads.get_sprint(int(sprint_id))
            if sprint and sprint.squad_id != squad.squad_id:
                sprint = None
        if not sprint:
            raise NotFound("Sprint not found", details={"squad_id": squad.squad_id, "sprint_id": sprint_id})

        period = Period(
            start=sprint.start_date,
            end=sprint.end_date,
            period_type=PeriodType.SPRINT,
            sprint_id=sprint.sprint_id,
        )
        return self._score(squad, period, now)

    def ensure_can_record(self, actor: User, squad_id: int) -> None:
        if not (is_admin(actor) or leads_squad(actor, self._squads.leads(int(squad_id)))):
            raise Forbidden("Only administrators or leads of this squad can record scores")

    def record_score(self, actor: User, report: ComplianceReport) -> ComplianceScore:
        self.ensure_can_record(actor, report.squad_id)

        score_id = self._compliance.save_score(report)
        logger.info("User %s recorded compliance score %s for squad %s", actor.user_id, score_id, report.squad_id)
        stored = self._compliance.get_score(score_id)
        if not stored:
            raise NotFound("Compliance score not found", details={"score_id": score_id})
        return stored
