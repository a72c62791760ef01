"""
Data wrangling stages for the L2 survey walkthrough.

This module provides functions for:
- Restricting participants to an allow-list of first languages
- Reshaping the wide question columns to long (tidy) form and back
- Joining the long observations with the question metadata
- Exporting intermediate tables

Every function returns a new DataFrame; inputs are never modified in place.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pandas as pd

from config.settings import SurveyConfig, get_config
from .loading import question_columns

logger = logging.getLogger(__name__)


@dataclass
class JoinReport:
    """Row accounting for an inner join."""

    left_rows: int
    right_rows: int
    matched_rows: int
    dropped_rows: int
    unmatched_keys: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return asdict(self)


def filter_languages(
    data: pd.DataFrame,
    languages: Optional[Sequence[str]] = None,
    language_col: Optional[str] = None,
    config: Optional[SurveyConfig] = None
) -> pd.DataFrame:
    """
    Keep only participants whose first language is in the allow-list.

    The language column of the result is categorical. Its categories are the
    allow-listed languages that actually occur in the result, in allow-list
    order, so no empty category survives the filter.

    Parameters
    ----------
    data : pd.DataFrame
        Wide participant table
    languages : Optional[Sequence[str]]
        Allowed language labels. Uses config default if None.
    language_col : Optional[str]
        Name of the language column. Uses config default if None.
    config : Optional[SurveyConfig]
        Survey column layout. Uses the global config if None.

    Returns
    -------
    pd.DataFrame
        Filtered copy of the table (possibly empty)
    """
    survey = config or get_config().survey
    languages = list(languages if languages is not None else survey.allowed_languages)
    language_col = language_col or survey.language_col

    df = data[data[language_col].isin(languages)].copy()

    present = set(df[language_col].astype(str))
    categories = [lang for lang in languages if lang in present]
    df[language_col] = pd.Categorical(df[language_col].astype(str), categories=categories)

    logger.info(
        f"Language filter kept {len(df):,} of {len(data):,} participants "
        f"({', '.join(categories) or 'none'})"
    )
    return df


def language_frequencies(
    data: pd.DataFrame,
    language_col: Optional[str] = None,
    top_n: Optional[int] = None,
    config: Optional[SurveyConfig] = None
) -> pd.DataFrame:
    """
    Count participants per language, most frequent first.

    Parameters
    ----------
    data : pd.DataFrame
        Participant table (wide or filtered)
    language_col : Optional[str]
        Name of the language column. Uses config default if None.
    top_n : Optional[int]
        Keep only the ``top_n`` most frequent languages
    config : Optional[SurveyConfig]
        Survey column layout. Uses the global config if None.

    Returns
    -------
    pd.DataFrame
        Columns ``[language_col, "n"]`` ranked descending by ``n``
    """
    language_col = language_col or (config or get_config().survey).language_col

    counts = (
        data[language_col]
        .astype(str)
        .value_counts()
        .rename_axis(language_col)
        .reset_index(name="n")
        .sort_values(["n", language_col], ascending=[False, True], kind="mergesort")
        .reset_index(drop=True)
    )

    if top_n is not None:
        counts = counts.head(top_n)

    return counts


def reshape_to_long(
    data: pd.DataFrame,
    prefix: Optional[str] = None,
    key_name: Optional[str] = None,
    value_name: Optional[str] = None,
    id_col: Optional[str] = None,
    config: Optional[SurveyConfig] = None
) -> pd.DataFrame:
    """
    Convert the wide question columns to long form.

    Every column named like a question (``<prefix><index>[_<sub-item>]``) is
    gathered into one ``(key_name, value_name)`` pair per participant. The
    remaining columns are repeated on every row derived from a participant.
    Rows are ordered by participant identifier, keeping the question order
    within each participant.

    Parameters
    ----------
    data : pd.DataFrame
        Wide participant table (normally already language-filtered)
    prefix : Optional[str]
        Question column prefix. Uses config default if None.
    key_name : Optional[str]
        Name of the question key column in the output
    value_name : Optional[str]
        Name of the answer column in the output
    id_col : Optional[str]
        Participant identifier column used for ordering
    config : Optional[SurveyConfig]
        Survey column layout. Uses the global config if None.

    Returns
    -------
    pd.DataFrame
        Long table with ``len(data) * n_questions`` rows
    """
    survey = config or get_config().survey
    prefix = prefix or survey.question_prefix
    key_name = key_name or survey.key_col
    value_name = value_name or survey.value_col
    id_col = id_col or survey.id_col

    value_vars = question_columns(data, prefix)
    id_vars = [col for col in data.columns if col not in value_vars]

    if not value_vars:
        logger.warning(f"No columns match question prefix '{prefix}'; long table is empty")
        return pd.DataFrame(columns=id_vars + [key_name, value_name])

    long_df = data.melt(
        id_vars=id_vars,
        value_vars=value_vars,
        var_name=key_name,
        value_name=value_name,
    )

    # melt stacks question by question; regroup by participant
    long_df = long_df.sort_values(id_col, kind="mergesort").reset_index(drop=True)

    logger.info(
        f"Reshaped {len(data):,} participants x {len(value_vars)} questions "
        f"into {len(long_df):,} observations"
    )
    return long_df


def pivot_to_wide(
    long_data: pd.DataFrame,
    key_name: Optional[str] = None,
    value_name: Optional[str] = None,
    id_col: Optional[str] = None,
    config: Optional[SurveyConfig] = None
) -> pd.DataFrame:
    """
    Reverse :func:`reshape_to_long`.

    Parameters
    ----------
    long_data : pd.DataFrame
        Long table with one row per (participant, question)
    key_name : Optional[str]
        Question key column
    value_name : Optional[str]
        Answer column
    id_col : Optional[str]
        Participant identifier column
    config : Optional[SurveyConfig]
        Survey column layout. Uses the global config if None.

    Returns
    -------
    pd.DataFrame
        One row per participant, question columns in first-seen order
    """
    survey = config or get_config().survey
    key_name = key_name or survey.key_col
    value_name = value_name or survey.value_col
    id_col = id_col or survey.id_col

    id_vars = [col for col in long_data.columns if col not in (key_name, value_name)]
    question_order = list(dict.fromkeys(long_data[key_name]))

    wide = long_data.pivot(index=id_vars, columns=key_name, values=value_name)
    wide = wide[question_order].reset_index()
    wide.columns.name = None

    return wide.sort_values(id_col, kind="mergesort").reset_index(drop=True)


def join_question_metadata(
    long_data: pd.DataFrame,
    metadata: pd.DataFrame,
    left_on: Optional[str] = None,
    right_on: Optional[str] = None,
    suffixes: Optional[Tuple[str, str]] = None,
    config: Optional[SurveyConfig] = None
) -> Tuple[pd.DataFrame, JoinReport]:
    """
    Inner-join the observations with the question metadata.

    Observations whose question key has no metadata row are dropped. The
    drop is reported (and logged), not repaired.

    Parameters
    ----------
    long_data : pd.DataFrame
        Long observation table
    metadata : pd.DataFrame
        Question metadata, one row per key
    left_on : Optional[str]
        Question key column of the observations
    right_on : Optional[str]
        Question key column of the metadata
    suffixes : Optional[Tuple[str, str]]
        Suffixes for non-key columns present on both sides
    config : Optional[SurveyConfig]
        Survey column layout. Uses the global config if None.

    Returns
    -------
    Tuple[pd.DataFrame, JoinReport]
        (joined_data, join_report)
    """
    survey = config or get_config().survey
    left_on = left_on or survey.key_col
    right_on = right_on or survey.metadata_key_col
    suffixes = tuple(suffixes or survey.join_suffixes)

    joined = long_data.merge(
        metadata,
        how="inner",
        left_on=left_on,
        right_on=right_on,
        suffixes=suffixes,
        validate="many_to_one",
    )

    known_keys = set(metadata[right_on])
    unmatched = sorted(
        {str(key) for key in long_data[left_on] if key not in known_keys}
    )

    report = JoinReport(
        left_rows=len(long_data),
        right_rows=len(metadata),
        matched_rows=len(joined),
        dropped_rows=len(long_data) - len(joined),
        unmatched_keys=unmatched,
    )

    if report.dropped_rows:
        logger.warning(
            f"Join dropped {report.dropped_rows:,} of {report.left_rows:,} observations; "
            f"no metadata for keys {unmatched[:10]}"
        )
    else:
        logger.info(f"Join matched all {report.matched_rows:,} observations")

    return joined, report


def joined_column_name(
    column: str,
    metadata: pd.DataFrame,
    left_on: Optional[str] = None,
    right_on: Optional[str] = None,
    suffixes: Optional[Tuple[str, str]] = None,
    config: Optional[SurveyConfig] = None
) -> str:
    """
    Name an observation column carries after :func:`join_question_metadata`.

    A column that the metadata also has gets the left suffix, unless it is
    the shared join key (same name on both sides).

    Examples
    --------
    With metadata columns ``["question", "correct"]`` the observation column
    ``correct`` becomes ``correct_response``.
    """
    survey = config or get_config().survey
    left_on = left_on or survey.key_col
    right_on = right_on or survey.metadata_key_col
    suffixes = tuple(suffixes or survey.join_suffixes)

    if column not in metadata.columns:
        return column
    if column == left_on == right_on:
        return column
    return f"{column}{suffixes[0]}"


def export_for_analysis(
    data: pd.DataFrame,
    output_path: Path,
    format: str = "csv"
) -> None:
    """
    Export a table for external analysis tools.

    Parameters
    ----------
    data : pd.DataFrame
        Data to export
    output_path : Path
        Output file path
    format : str
        Output format ("csv", "parquet", "json")
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    if format == "csv":
        data.to_csv(output_path, index=False)
    elif format == "parquet":
        data.to_parquet(output_path, index=False)
    elif format == "json":
        data.to_json(output_path, orient="records", indent=2)
    else:
        raise ValueError(f"Unknown format: {format}")

    logger.info(f"Exported {len(data)} records to {output_path}")
