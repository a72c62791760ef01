"""
Analysis module for the L2 survey walkthrough.

Key components:
    - aggregation: Per-subject totals and accuracy curves
    - regression: Logistic regression with an explicit baseline language
    - pipeline: End-to-end analyzer tying the stages together
"""

from .aggregation import (
    add_learning_duration,
    total_scores,
    attach_total_scores,
    accuracy_by_duration,
    accuracy_by_question,
)

from .regression import (
    LanguageCovariate,
    CovariateSet,
    LogisticFitResult,
    LANGUAGE_ONLY,
    EXPOSURE,
    DURATION,
    FULL,
    DEFAULT_COVARIATE_SETS,
    build_formula,
    build_model_input,
    fit_logistic_model,
    compare_models,
)

from .pipeline import SurveyAnalyzer, run_survey_analysis

__all__ = [
    "add_learning_duration",
    "total_scores",
    "attach_total_scores",
    "accuracy_by_duration",
    "accuracy_by_question",
    "LanguageCovariate",
    "CovariateSet",
    "LogisticFitResult",
    "LANGUAGE_ONLY",
    "EXPOSURE",
    "DURATION",
    "FULL",
    "DEFAULT_COVARIATE_SETS",
    "build_formula",
    "build_model_input",
    "fit_logistic_model",
    "compare_models",
    "SurveyAnalyzer",
    "run_survey_analysis",
]
