"""
Logistic regression on a single survey question.

The outcome is the binary correctness of one question; covariates are chosen
from a fixed menu and bundled into named :class:`CovariateSet` variants so an
analysis question can swap covariates without touching the fitting code.

The language covariate is treatment-coded against an explicit baseline
(Spanish unless configured otherwise), so every language coefficient reads as
a contrast with that baseline.
"""

from __future__ import annotations

import logging
import re
import warnings
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

import numpy as np
import pandas as pd
import statsmodels.api as sm
import statsmodels.formula.api as smf
from scipy import stats
from statsmodels.tools.sm_exceptions import ConvergenceWarning, PerfectSeparationWarning

from config.settings import ModelConfig, SurveyConfig, get_config

logger = logging.getLogger(__name__)


class LanguageCovariate(Enum):
    """First-language levels of the categorical covariate."""

    SPANISH = "Spanish"
    FRENCH = "French"
    GERMAN = "German"

    @classmethod
    def baseline(cls) -> "LanguageCovariate":
        """The configured reference level."""
        return cls.from_label(get_config().model.baseline_language)

    @classmethod
    def from_label(
        cls,
        label: str,
        allowed: Optional[List[str]] = None
    ) -> "LanguageCovariate":
        """
        Resolve a language label, failing early on unknown levels.

        Raises
        ------
        ValueError
            If the label is not a covariate level or is outside ``allowed``
        """
        try:
            level = cls(label)
        except ValueError:
            raise ValueError(
                f"Unknown baseline language '{label}'; choose from {[member.value for member in cls]}"
            ) from None
        if allowed is not None and level.value not in allowed:
            raise ValueError(
                f"Baseline language '{label}' is not in the language allow-list {list(allowed)}"
            )
        return level

    @classmethod
    def ordered_levels(cls) -> List["LanguageCovariate"]:
        """All levels, baseline first."""
        base = cls.baseline()
        return [base] + [level for level in cls if level is not base]


# Covariate menu
LANGUAGE = "language"
EXPOSURE_AGE = "exposure_age"
LEARNING_DURATION = "learning_duration"
TOTAL_SCORE = "total_score"

AVAILABLE_COVARIATES = (LANGUAGE, EXPOSURE_AGE, LEARNING_DURATION, TOTAL_SCORE)


@dataclass(frozen=True)
class CovariateSet:
    """A named selection of covariates for one model variant."""

    name: str
    covariates: Tuple[str, ...]

    def __post_init__(self):
        if not self.covariates:
            raise ValueError(f"Covariate set '{self.name}' is empty")
        unknown = [c for c in self.covariates if c not in AVAILABLE_COVARIATES]
        if unknown:
            raise ValueError(
                f"Unknown covariate(s) {unknown}; choose from {list(AVAILABLE_COVARIATES)}"
            )

    def is_nested_in(self, other: "CovariateSet") -> bool:
        return set(self.covariates) < set(other.covariates)


LANGUAGE_ONLY = CovariateSet("language_only", (LANGUAGE,))
EXPOSURE = CovariateSet("language_exposure", (LANGUAGE, EXPOSURE_AGE))
DURATION = CovariateSet("language_duration", (LANGUAGE, LEARNING_DURATION))
FULL = CovariateSet("full", (LANGUAGE, EXPOSURE_AGE, LEARNING_DURATION, TOTAL_SCORE))

DEFAULT_COVARIATE_SETS = (LANGUAGE_ONLY, EXPOSURE, DURATION, FULL)


@dataclass
class LogisticFitResult:
    """Container for a fitted binomial GLM."""

    question: str
    covariate_set: CovariateSet
    formula: str
    baseline: str
    coefficients: pd.DataFrame
    n_observations: int
    converged: bool
    perfect_separation: bool
    aic: float
    log_likelihood: float
    pseudo_r2: float
    model: Any = None

    def summary(self) -> str:
        """Text summary of the fit, as printed by statsmodels."""
        return str(self.model.summary())

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "question": self.question,
            "covariate_set": self.covariate_set.name,
            "covariates": list(self.covariate_set.covariates),
            "formula": self.formula,
            "baseline": self.baseline,
            "coefficients": self.coefficients.to_dict(orient="index"),
            "n_observations": self.n_observations,
            "converged": self.converged,
            "perfect_separation": self.perfect_separation,
            "aic": self.aic,
            "log_likelihood": self.log_likelihood,
            "pseudo_r2": self.pseudo_r2,
        }


@dataclass
class LikelihoodRatioResult:
    """Likelihood-ratio test between two nested fits."""

    restricted: str
    full: str
    statistic: float
    df: int
    p_value: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "restricted": self.restricted,
            "full": self.full,
            "statistic": self.statistic,
            "df": self.df,
            "p_value": self.p_value,
        }


def _covariate_columns(config: Optional[SurveyConfig] = None) -> Dict[str, str]:
    survey = config or get_config().survey
    return {
        LANGUAGE: survey.language_col,
        EXPOSURE_AGE: survey.exposure_col,
        LEARNING_DURATION: survey.duration_col,
        TOTAL_SCORE: survey.total_col,
    }


def _baseline_label(baseline: Optional[Union[LanguageCovariate, str]]) -> str:
    if baseline is None:
        return LanguageCovariate.baseline().value
    if isinstance(baseline, LanguageCovariate):
        return baseline.value
    return str(baseline)


def build_formula(
    outcome: str,
    covariate_set: CovariateSet,
    baseline: Optional[Union[LanguageCovariate, str]] = None,
    config: Optional[SurveyConfig] = None
) -> str:
    """
    Build the patsy formula for a covariate set.

    Parameters
    ----------
    outcome : str
        Binary outcome column
    covariate_set : CovariateSet
        Covariates to include
    baseline : Optional[Union[LanguageCovariate, str]]
        Reference level of the language covariate
    config : Optional[SurveyConfig]
        Survey column layout. Uses the global config if None.

    Returns
    -------
    str
        e.g. ``correct ~ C(primelangs, Treatment(reference="Spanish")) + Eng_start``
    """
    columns = _covariate_columns(config)
    terms = []
    for covariate in covariate_set.covariates:
        column = columns[covariate]
        if covariate == LANGUAGE:
            terms.append(
                f'C({column}, Treatment(reference="{_baseline_label(baseline)}"))'
            )
        else:
            terms.append(column)
    return f"{outcome} ~ " + " + ".join(terms)


def build_model_input(
    long_data: pd.DataFrame,
    question: Optional[str] = None,
    covariate_set: CovariateSet = LANGUAGE_ONLY,
    value_col: Optional[str] = None,
    config: Optional[SurveyConfig] = None
) -> pd.DataFrame:
    """
    Restrict the observations to one question and the model's columns.

    Parameters
    ----------
    long_data : pd.DataFrame
        Long observation table with derived columns attached
    question : Optional[str]
        Question key. Uses config target question if None.
    covariate_set : CovariateSet
        Covariates required by the model
    value_col : Optional[str]
        Binary outcome column
    config : Optional[SurveyConfig]
        Survey column layout. Uses the global config if None.

    Returns
    -------
    pd.DataFrame
        Complete cases for the outcome and covariates
    """
    survey = config or get_config().survey
    question = question or survey.target_question
    value_col = value_col or survey.value_col

    columns = _covariate_columns(survey)
    needed = [value_col] + [columns[c] for c in covariate_set.covariates]

    missing = [col for col in needed + [survey.key_col] if col not in long_data.columns]
    if missing:
        raise ValueError(
            f"Model '{covariate_set.name}' needs column(s) {missing}; "
            f"add derived columns before fitting"
        )

    df = long_data.loc[long_data[survey.key_col] == question, needed].dropna().copy()
    if df.empty:
        raise ValueError(f"No complete observations for question '{question}'")

    df[value_col] = df[value_col].astype(int)

    if LANGUAGE in covariate_set.covariates:
        lang_col = columns[LANGUAGE]
        if isinstance(df[lang_col].dtype, pd.CategoricalDtype):
            df[lang_col] = df[lang_col].cat.remove_unused_categories()
        else:
            df[lang_col] = pd.Categorical(df[lang_col].astype(str))

    return df


def _clean_term(term: str) -> str:
    """``C(lang, Treatment(reference="Spanish"))[T.French]`` -> ``lang[T.French]``."""
    return re.sub(r"^C\((\w+), Treatment\(reference=[^)]*\)\)", r"\1", term)


def fit_logistic_model(
    long_data: pd.DataFrame,
    question: Optional[str] = None,
    covariate_set: CovariateSet = LANGUAGE_ONLY,
    baseline: Optional[Union[LanguageCovariate, str]] = None,
    value_col: Optional[str] = None,
    config: Optional[SurveyConfig] = None,
    model_config: Optional[ModelConfig] = None
) -> LogisticFitResult:
    """
    Fit a binomial GLM (logit link) for one question.

    Parameters
    ----------
    long_data : pd.DataFrame
        Long observation table
    question : Optional[str]
        Question key. Uses config target question if None.
    covariate_set : CovariateSet
        Covariates to include
    baseline : Optional[Union[LanguageCovariate, str]]
        Reference level of the language covariate. Uses config if None.
    value_col : Optional[str]
        Binary outcome column
    config : Optional[SurveyConfig]
        Survey column layout. Uses the global config if None.
    model_config : Optional[ModelConfig]
        Iteration limit and confidence level. Uses the global config if None.

    Returns
    -------
    LogisticFitResult
        Coefficients, standard errors, z-values, p-values and fit statistics

    Raises
    ------
    ValueError
        If the model input is empty or the baseline language is absent
    """
    survey = config or get_config().survey
    model_config = model_config or get_config().model
    question = question or survey.target_question
    value_col = value_col or survey.value_col
    if baseline is None:
        baseline = model_config.baseline_language
    baseline = _baseline_label(baseline)

    df = build_model_input(long_data, question, covariate_set, value_col, survey)

    if LANGUAGE in covariate_set.covariates:
        levels = list(df[survey.language_col].cat.categories)
        if baseline not in levels:
            raise ValueError(
                f"Baseline language '{baseline}' not present for question "
                f"'{question}' (levels: {levels})"
            )

    formula = build_formula(value_col, covariate_set, baseline, survey)
    logger.info(f"Fitting {covariate_set.name}: {formula} (n={len(df):,})")

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        model = smf.glm(formula, data=df, family=sm.families.Binomial())
        result = model.fit(maxiter=model_config.max_iterations)

    perfect_separation = any(
        issubclass(w.category, PerfectSeparationWarning) for w in caught
    )
    for warning in caught:
        level = logging.WARNING
        if not issubclass(warning.category, (PerfectSeparationWarning, ConvergenceWarning)):
            level = logging.DEBUG
        logger.log(level, f"{covariate_set.name}: {warning.category.__name__}: {warning.message}")

    conf_int = result.conf_int(alpha=model_config.alpha)
    coefficients = pd.DataFrame({
        "estimate": result.params,
        "std_error": result.bse,
        "z_value": result.tvalues,
        "p_value": result.pvalues,
        "ci_lower": conf_int[0],
        "ci_upper": conf_int[1],
    })
    coefficients.index = [_clean_term(term) for term in coefficients.index]

    converged = bool(getattr(result, "converged", True))
    if not converged:
        logger.warning(f"{covariate_set.name}: IRLS did not converge")

    return LogisticFitResult(
        question=question,
        covariate_set=covariate_set,
        formula=formula,
        baseline=baseline,
        coefficients=coefficients,
        n_observations=int(result.nobs),
        converged=converged,
        perfect_separation=perfect_separation,
        aic=float(result.aic),
        log_likelihood=float(result.llf),
        pseudo_r2=float(1 - result.llf / result.llnull) if result.llnull else np.nan,
        model=result,
    )


def compare_models(
    restricted: LogisticFitResult,
    full: LogisticFitResult
) -> LikelihoodRatioResult:
    """
    Likelihood-ratio test of a restricted fit against a fuller one.

    Both fits must use the same question and observations, and the restricted
    covariates must be a strict subset of the full ones.
    """
    if not restricted.covariate_set.is_nested_in(full.covariate_set):
        raise ValueError(
            f"'{restricted.covariate_set.name}' is not nested in '{full.covariate_set.name}'"
        )
    if restricted.question != full.question or restricted.n_observations != full.n_observations:
        raise ValueError("Nested fits must share the question and observations")

    statistic = max(2 * (full.log_likelihood - restricted.log_likelihood), 0.0)
    df = int(len(full.coefficients) - len(restricted.coefficients))
    p_value = float(stats.chi2.sf(statistic, df))

    return LikelihoodRatioResult(
        restricted=restricted.covariate_set.name,
        full=full.covariate_set.name,
        statistic=statistic,
        df=df,
        p_value=p_value,
    )
