"""
Input file loading for the L2 survey walkthrough.

Two delimited files feed the pipeline:
- the wide participant file (one row per respondent, one column per question)
- the question metadata file (one row per question key)

Malformed or missing files are fatal: parser errors and ``FileNotFoundError``
propagate to the caller unchanged.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import List, Optional, Union

import pandas as pd

from config.settings import SurveyConfig, get_config

logger = logging.getLogger(__name__)


def _read_table(path: Path) -> pd.DataFrame:
    """Read a table, picking the parser from the file suffix."""
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")

    if path.suffix == ".parquet":
        return pd.read_parquet(path)
    if path.suffix in (".tsv", ".tab"):
        return pd.read_csv(path, sep="\t")
    return pd.read_csv(path)


def _require_columns(df: pd.DataFrame, columns: List[str], source: str) -> None:
    missing = [col for col in columns if col not in df.columns]
    if missing:
        raise ValueError(f"Missing required column(s) in {source}: {missing}")


def question_columns(df: pd.DataFrame, prefix: str = "q") -> List[str]:
    """
    Select the question columns of a wide table.

    A question column is named with the prefix, a question index and an
    optional sub-item suffix (``q1``, ``q12``, ``q32_5``). Columns are
    returned in table order.

    Parameters
    ----------
    df : pd.DataFrame
        Wide participant table
    prefix : str
        Common prefix of the question columns

    Returns
    -------
    List[str]
        Matching column names
    """
    pattern = re.compile(rf"^{re.escape(prefix)}\d+(_\w+)?$")
    return [col for col in df.columns if pattern.match(str(col))]


def load_participants(
    path: Union[str, Path],
    config: Optional[SurveyConfig] = None
) -> pd.DataFrame:
    """
    Load the wide participant table.

    Parameters
    ----------
    path : Union[str, Path]
        Path to the delimited participant file (CSV, TSV or Parquet)
    config : Optional[SurveyConfig]
        Column layout. Uses the global configuration if None.

    Returns
    -------
    pd.DataFrame
        One row per participant

    Raises
    ------
    FileNotFoundError
        If the file does not exist
    ValueError
        If required columns are missing or identifiers are not unique
    """
    config = config or get_config().survey
    path = Path(path)

    logger.info(f"Loading participants from {path}")
    df = _read_table(path)

    _require_columns(
        df,
        [config.id_col, config.language_col, config.age_col, config.exposure_col],
        source=path.name,
    )

    duplicated = df[config.id_col].duplicated()
    if duplicated.any():
        examples = df.loc[duplicated, config.id_col].head(5).tolist()
        raise ValueError(
            f"Participant identifier '{config.id_col}' is not unique "
            f"({int(duplicated.sum())} duplicates, e.g. {examples})"
        )

    n_questions = len(question_columns(df, config.question_prefix))
    logger.info(f"Loaded {len(df):,} participants with {n_questions} question columns")
    return df


def load_question_metadata(
    path: Union[str, Path],
    config: Optional[SurveyConfig] = None
) -> pd.DataFrame:
    """
    Load the question metadata table.

    Parameters
    ----------
    path : Union[str, Path]
        Path to the delimited metadata file
    config : Optional[SurveyConfig]
        Column layout. Uses the global configuration if None.

    Returns
    -------
    pd.DataFrame
        One row per question key
    """
    config = config or get_config().survey
    path = Path(path)

    logger.info(f"Loading question metadata from {path}")
    df = _read_table(path)

    _require_columns(df, [config.metadata_key_col], source=path.name)

    duplicated = df[config.metadata_key_col].duplicated()
    if duplicated.any():
        examples = df.loc[duplicated, config.metadata_key_col].head(5).tolist()
        raise ValueError(
            f"Question key '{config.metadata_key_col}' is not unique: {examples}"
        )

    df[config.metadata_key_col] = df[config.metadata_key_col].astype(str)

    logger.info(f"Loaded metadata for {len(df):,} questions")
    return df
