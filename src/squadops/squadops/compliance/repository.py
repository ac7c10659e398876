from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import ComplianceReport, ComplianceRule, ComplianceScore


class ComplianceRepository(Protocol):
    def rules_for_squad(self, squad_id: int, *, active_only: bool = True) -> Sequence[ComplianceRule]:
        raise NotImplementedError

    def save_score(self, report: ComplianceReport) -> int:
        raise NotImplementedError

    def get_score(self, score_id: int) -> Optional[ComplianceScore]:
        raise NotImplementedError
