"""
Group-by reductions over the long observation table.

Groups are derived from the rows present: a (participant, language) or
(language, duration) combination with no observations never appears in the
output. Results are ordered by their group keys.
"""

from __future__ import annotations

import logging
from typing import Optional

import pandas as pd

from config.settings import SurveyConfig, get_config

logger = logging.getLogger(__name__)


def add_learning_duration(
    data: pd.DataFrame,
    config: Optional[SurveyConfig] = None
) -> pd.DataFrame:
    """Add ``learning_duration = age - age of first English exposure``."""
    survey = config or get_config().survey
    df = data.copy()
    df[survey.duration_col] = df[survey.age_col] - df[survey.exposure_col]
    return df


def total_scores(
    long_data: pd.DataFrame,
    value_col: Optional[str] = None,
    config: Optional[SurveyConfig] = None
) -> pd.DataFrame:
    """
    Sum correct answers per participant.

    Parameters
    ----------
    long_data : pd.DataFrame
        Long observation table with a binary correctness column
    value_col : Optional[str]
        Column to sum. Uses config default if None.
    config : Optional[SurveyConfig]
        Survey column layout. Uses the global config if None.

    Returns
    -------
    pd.DataFrame
        Columns ``[id, language, total_score]``, one row per participant
    """
    survey = config or get_config().survey
    value_col = value_col or survey.value_col

    totals = (
        long_data
        .groupby([survey.id_col, survey.language_col], observed=True, sort=True)[value_col]
        .sum()
        .reset_index(name=survey.total_col)
    )

    logger.info(f"Computed total scores for {len(totals):,} participants")
    return totals


def attach_total_scores(
    long_data: pd.DataFrame,
    totals: pd.DataFrame,
    config: Optional[SurveyConfig] = None
) -> pd.DataFrame:
    """Re-join per-participant totals onto the observations by identifier."""
    survey = config or get_config().survey
    return long_data.merge(
        totals[[survey.id_col, survey.total_col]],
        how="left",
        on=survey.id_col,
        validate="many_to_one",
    )


def accuracy_by_duration(
    long_data: pd.DataFrame,
    question: Optional[str] = None,
    value_col: Optional[str] = None,
    config: Optional[SurveyConfig] = None
) -> pd.DataFrame:
    """
    Mean accuracy on one question per language and learning duration.

    Parameters
    ----------
    long_data : pd.DataFrame
        Long observation table including the learning duration column
    question : Optional[str]
        Question key to restrict to. Uses config target question if None.
    value_col : Optional[str]
        Binary correctness column
    config : Optional[SurveyConfig]
        Survey column layout. Uses the global config if None.

    Returns
    -------
    pd.DataFrame
        Columns ``[language, learning_duration, accuracy, n]``
    """
    survey = config or get_config().survey
    question = question or survey.target_question
    value_col = value_col or survey.value_col

    subset = long_data[long_data[survey.key_col] == question]
    if subset.empty:
        logger.warning(f"No observations for question '{question}'")

    curve = (
        subset
        .groupby([survey.language_col, survey.duration_col], observed=True, sort=True)[value_col]
        .agg(accuracy="mean", n="count")
        .reset_index()
    )

    return curve


def accuracy_by_question(
    long_data: pd.DataFrame,
    value_col: Optional[str] = None,
    config: Optional[SurveyConfig] = None
) -> pd.DataFrame:
    """
    Mean accuracy and number of responses per question and language.

    Parameters
    ----------
    long_data : pd.DataFrame
        Long observation table
    value_col : Optional[str]
        Binary correctness column
    config : Optional[SurveyConfig]
        Survey column layout. Uses the global config if None.

    Returns
    -------
    pd.DataFrame
        Columns ``[item, language, accuracy, n]``
    """
    survey = config or get_config().survey
    value_col = value_col or survey.value_col

    return (
        long_data
        .groupby([survey.key_col, survey.language_col], observed=True, sort=True)[value_col]
        .agg(accuracy="mean", n="count")
        .reset_index()
    )
