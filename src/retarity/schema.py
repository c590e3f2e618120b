from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel

from retarity.analysis.report_rendering import ArityReport
from retarity.analysis.tally import ArityTally


class ArityRowDTO(BaseModel):
    arity: int
    count: int


class FlaggedDeclarationDTO(BaseModel):
    path: str
    line: int
    name: str
    receiver: Optional[str] = None
    arity: int
    reason: str


class ArityReportDTO(BaseModel):
    rows: List[ArityRowDTO]
    total: int
    multi: int
    error_shaped: int
    percentage: Optional[float] = None
    flagged: List[FlaggedDeclarationDTO] = []


def report_to_dto(report: ArityReport, tally: ArityTally) -> ArityReportDTO:
    return ArityReportDTO(
        rows=[ArityRowDTO(arity=row.arity, count=row.count) for row in report.rows],
        total=report.total,
        multi=report.multi,
        error_shaped=report.error_shaped,
        percentage=report.percentage if report.has_percentage else None,
        flagged=[
            FlaggedDeclarationDTO(
                path=str(item.path),
                line=item.line,
                name=item.name,
                receiver=item.receiver,
                arity=item.arity,
                reason=item.reason,
            )
            for item in tally.flagged
        ],
    )
