"""Return-arity analysis for Go declarations."""

from .arity_walk import ArityWalker, FunctionDeclaration, iter_function_declarations, walk_program
from .error_shape import is_error_like
from .report_rendering import ArityReport, ArityRow, render_report, summarize
from .tally import ArityTally, FlaggedDeclaration

__all__ = [
    "ArityReport",
    "ArityRow",
    "ArityTally",
    "ArityWalker",
    "FlaggedDeclaration",
    "FunctionDeclaration",
    "is_error_like",
    "iter_function_declarations",
    "render_report",
    "summarize",
    "walk_program",
]
