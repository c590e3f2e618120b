from __future__ import annotations

import math
from dataclasses import dataclass

from retarity.analysis.tally import ArityTally

_RULE = "-" * 29


@dataclass(frozen=True)
class ArityRow:
    arity: int
    count: int


@dataclass(frozen=True)
class ArityReport:
    rows: tuple[ArityRow, ...]
    total: int
    multi: int
    error_shaped: int
    percentage: float

    @property
    def has_percentage(self) -> bool:
        return not math.isnan(self.percentage)


def summarize(tally: ArityTally) -> ArityReport:
    rows = tuple(ArityRow(arity=arity, count=tally.counts[arity]) for arity in sorted(tally.counts))
    total = sum(row.count for row in rows)
    multi = sum(row.count for row in rows if row.arity >= 2)
    if total == 0:
        percentage = math.nan
    else:
        percentage = (multi - tally.error_shaped) / total * 100
    return ArityReport(
        rows=rows,
        total=total,
        multi=multi,
        error_shaped=tally.error_shaped,
        percentage=percentage,
    )


def format_percentage(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    return f"{value:f}"


def render_report(report: ArityReport) -> str:
    lines = [
        "DONE",
        "",
        "functions with N return arguments:",
        _RULE,
        "returns | number of functions",
    ]
    lines.extend(f"{row.arity:7d} | {row.count}" for row in report.rows)
    lines.extend(
        [
            _RULE,
            "",
            f"total number of functions: {report.total}",
            f"total number of functions with multiple return parameters: {report.multi}",
            "number of functions with 2 return arguments, where the second argument is an error: "
            f"{report.error_shaped}",
            "",
            "percentage of functions where multiple return parameters are really what we want: "
            f"{format_percentage(report.percentage)}",
            "",
        ]
    )
    return "\n".join(lines) + "\n"
