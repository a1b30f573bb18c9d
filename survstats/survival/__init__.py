"""
Survival analysis.

Public API:
    SurvivalDesign.for_survival(...) / .from_table(...) -> SurvivalDesign
    kaplan_meier(...) -> KMSolution
    nelson_aalen(...) -> NelsonAalenSolution
    survdiff(...) -> LogRankSolution
    rmst(...) -> RMSTSolution
    coxph(...) / coxph_formula(...) -> CoxSolution
"""

from survstats.survival._formula import SurvivalFormula, parse_formula
from survstats.survival.design import RiskSetTable, SurvivalDesign
from survstats.survival.solution import (
    CoxSolution,
    KMSolution,
    LogRankSolution,
    NelsonAalenSolution,
    RMSTSolution,
)
from survstats.survival.solvers import (
    as_design,
    coxph,
    coxph_formula,
    kaplan_meier,
    nelson_aalen,
    rmst,
    survdiff,
)

__all__ = [
    "SurvivalDesign",
    "RiskSetTable",
    "SurvivalFormula",
    "parse_formula",
    "as_design",
    "kaplan_meier",
    "nelson_aalen",
    "survdiff",
    "rmst",
    "coxph",
    "coxph_formula",
    "KMSolution",
    "NelsonAalenSolution",
    "LogRankSolution",
    "RMSTSolution",
    "CoxSolution",
]
