from __future__ import annotations

from typing import Optional, Sequence

from ..common.datetime_utils import from_db
from ..core.enums import PeriodType, RuleType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, load_json
from .model import ComplianceReport, ComplianceRule, ComplianceScore
from .repository import ComplianceRepository


class MySQLComplianceRepository(ComplianceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def rules_for_squad(self, squad_id: int, *, active_only: bool = True) -> Sequence[ComplianceRule]:
        sql = """
            SELECT rule_id, squad_id, rule_name, rule_type, rule_config, severity, is_active
            FROM compliance_rules
            WHERE squad_id=%s
        """
        if active_only:
            sql += " AND is_active=1"
        sql += " ORDER BY rule_id"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, (int(squad_id),))
            return [
                ComplianceRule(
                    rule_id=int(r["rule_id"]),
                    squad_id=int(r["squad_id"]),
                    rule_name=r["rule_name"],
                    rule_type=RuleType(r["rule_type"]),
                    rule_config=load_json(r.get("rule_config"), {}),
                    severity=int(r["severity"]),
                    is_active=bool(r["is_active"]),
                )
                for r in fetchall(cur)
            ]

    def save_score(self, report: ComplianceReport) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO compliance_scores(
                    squad_id, sprint_id, period_start, period_end, period_type, score, violations, metrics
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(report.squad_id),
                    report.period.sprint_id,
                    report.period.start,
                    report.period.end,
                    report.period.period_type.value,
                    report.score,
                    dump_json([v.to_dict() for v in report.violations]),
                    dump_json(report.metrics),
                ),
            )
            return int(cur.lastrowid)

    def get_score(self, score_id: int) -> Optional[ComplianceScore]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT score_id, squad_id, sprint_id, period_start, period_end, period_type,
                       score, violations, metrics, created_at
                FROM compliance_scores
                WHERE score_id=%s
                """,
                (int(score_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return ComplianceScore(
                score_id=int(r["score_id"]),
                squad_id=int(r["squad_id"]),
                sprint_id=int(r["sprint_id"]) if r.get("sprint_id") is not None else None,
                period_start=r["period_start"],
                period_end=r["period_end"],
                period_type=PeriodType(r["period_type"]),
                score=float(r["score"]),
                violations=load_json(r.get("violations"), []),
                metrics=load_json(r.get("metrics"), {}),
                created_at=from_db(r.get("created_at")),
            )
