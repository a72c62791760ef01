"""
End-to-end walkthrough pipeline for the L2 survey.

This module provides:
- Loading of the participant and question metadata files
- Filter -> reshape -> join -> derive stages, each producing a new table
- Per-subject totals and the accuracy-by-experience curve
- Logistic regression variants for one target question
- Summary and export helpers

Data flows strictly downstream: no stage reads back from a later one, and the
tables handed between stages are never modified in place.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd
from tqdm import tqdm

from config.settings import AppConfig, get_config
from ..data.loading import load_participants, load_question_metadata, question_columns
from ..data.preprocessing import (
    JoinReport,
    export_for_analysis,
    filter_languages,
    join_question_metadata,
    joined_column_name,
    language_frequencies,
    reshape_to_long,
)
from ..utils.helpers import ensure_directory, format_pvalue, save_json
from .aggregation import (
    accuracy_by_duration,
    accuracy_by_question,
    add_learning_duration,
    attach_total_scores,
    total_scores,
)
from .regression import (
    DEFAULT_COVARIATE_SETS,
    CovariateSet,
    LanguageCovariate,
    LikelihoodRatioResult,
    LogisticFitResult,
    compare_models,
    fit_logistic_model,
)

logger = logging.getLogger(__name__)


@dataclass
class SurveyDataset:
    """Container for the loaded input files."""

    participants: pd.DataFrame
    questions: pd.DataFrame
    metadata: Dict[str, Any]


@dataclass
class PreparedData:
    """Tables produced by the wrangling stages."""

    filtered: pd.DataFrame
    observations: pd.DataFrame
    totals: pd.DataFrame
    join_report: JoinReport
    value_col: str


class SurveyAnalyzer:
    """
    Analyzer for the second-language-acquisition survey.

    Each step stores its output in ``results`` so the walkthrough can inspect
    intermediate tables between steps.
    """

    def __init__(self, config: Optional[AppConfig] = None):
        """
        Initialize the analyzer.

        Parameters
        ----------
        config : Optional[AppConfig]
            Application configuration. Uses default if None. Every stage
            reads its column layout and model settings from it.
        """
        self.config = config or get_config()
        self.data: Optional[SurveyDataset] = None
        self.prepared: Optional[PreparedData] = None
        self.results: Dict[str, Any] = {}

    def load_data(
        self,
        participants_path: Optional[Path] = None,
        metadata_path: Optional[Path] = None
    ) -> SurveyDataset:
        """
        Load the participant and question metadata files.

        Parameters
        ----------
        participants_path : Optional[Path]
            Wide participant file. Uses config default if None.
        metadata_path : Optional[Path]
            Question metadata file. Uses config default if None.

        Returns
        -------
        SurveyDataset
            Loaded tables
        """
        survey = self.config.survey
        participants_path = Path(participants_path or self.config.participants_path)
        metadata_path = Path(metadata_path or self.config.metadata_path)

        participants = load_participants(participants_path, survey)
        questions = load_question_metadata(metadata_path, survey)

        metadata = {
            "n_participants": len(participants),
            "n_questions": len(question_columns(participants, survey.question_prefix)),
            "n_languages": int(participants[survey.language_col].nunique()),
            "n_metadata_rows": len(questions),
        }

        self.data = SurveyDataset(
            participants=participants,
            questions=questions,
            metadata=metadata,
        )
        return self.data

    def prepare(self) -> PreparedData:
        """
        Run filter -> reshape -> join -> derived columns.

        Returns
        -------
        PreparedData
            Filtered wide table, joined observations and per-subject totals
        """
        if self.data is None:
            raise ValueError("Data not loaded. Call load_data() first.")

        survey = self.config.survey

        filtered = filter_languages(
            self.data.participants,
            survey.allowed_languages,
            survey.language_col,
            config=survey,
        )
        long_df = reshape_to_long(
            filtered,
            prefix=survey.question_prefix,
            key_name=survey.key_col,
            value_name=survey.value_col,
            id_col=survey.id_col,
            config=survey,
        )
        joined, report = join_question_metadata(
            long_df,
            self.data.questions,
            left_on=survey.key_col,
            right_on=survey.metadata_key_col,
            suffixes=survey.join_suffixes,
            config=survey,
        )
        # A metadata column sharing the answer column name renames it
        value_col = joined_column_name(
            survey.value_col,
            self.data.questions,
            left_on=survey.key_col,
            right_on=survey.metadata_key_col,
            suffixes=survey.join_suffixes,
            config=survey,
        )
        if value_col != survey.value_col:
            logger.info(f"Answer column is '{value_col}' after the join")

        observations = add_learning_duration(joined, config=survey)
        totals = total_scores(observations, value_col=value_col, config=survey)
        observations = attach_total_scores(observations, totals, config=survey)

        self.prepared = PreparedData(
            filtered=filtered,
            observations=observations,
            totals=totals,
            join_report=report,
            value_col=value_col,
        )
        self.results["join_report"] = report
        return self.prepared

    def compute_aggregates(self, question: Optional[str] = None) -> Dict[str, pd.DataFrame]:
        """
        Compute the descriptive tables of the walkthrough.

        Parameters
        ----------
        question : Optional[str]
            Question for the accuracy curve. Uses config target if None.

        Returns
        -------
        Dict[str, pd.DataFrame]
            language_frequencies, total_scores, accuracy_curve, accuracy_by_question
        """
        if self.prepared is None:
            raise ValueError("Data not prepared. Call prepare() first.")

        survey = self.config.survey
        observations = self.prepared.observations
        value_col = self.prepared.value_col
        aggregates = {
            "language_frequencies": language_frequencies(
                self.data.participants, config=survey
            ),
            "total_scores": self.prepared.totals,
            "accuracy_curve": accuracy_by_duration(
                observations, question, value_col=value_col, config=survey
            ),
            "accuracy_by_question": accuracy_by_question(
                observations, value_col=value_col, config=survey
            ),
        }

        self.results["aggregates"] = aggregates
        return aggregates

    def fit_models(
        self,
        covariate_sets: Iterable[CovariateSet] = DEFAULT_COVARIATE_SETS,
        question: Optional[str] = None
    ) -> Dict[str, LogisticFitResult]:
        """
        Fit one logistic regression per covariate set.

        Parameters
        ----------
        covariate_sets : Iterable[CovariateSet]
            Model variants to fit
        question : Optional[str]
            Question key. Uses config target if None.

        Returns
        -------
        Dict[str, LogisticFitResult]
            Fits keyed by covariate set name

        Raises
        ------
        ValueError
            If the configured baseline language is not a known level or is
            outside the language allow-list
        """
        if self.prepared is None:
            raise ValueError("Data not prepared. Call prepare() first.")

        baseline = LanguageCovariate.from_label(
            self.config.model.baseline_language,
            allowed=self.config.survey.allowed_languages,
        )

        fits = {}
        for covariate_set in tqdm(list(covariate_sets), desc="Fitting models"):
            fits[covariate_set.name] = fit_logistic_model(
                self.prepared.observations,
                question=question,
                covariate_set=covariate_set,
                baseline=baseline,
                value_col=self.prepared.value_col,
                config=self.config.survey,
                model_config=self.config.model,
            )

        self.results["models"] = fits
        self.results["model_comparisons"] = self._compare_nested(list(fits.values()))
        return fits

    def _compare_nested(self, fits: List[LogisticFitResult]) -> List[LikelihoodRatioResult]:
        comparisons = []
        for restricted in fits:
            for full in fits:
                if not restricted.covariate_set.is_nested_in(full.covariate_set):
                    continue
                if restricted.n_observations != full.n_observations:
                    logger.info(
                        f"Skipping {restricted.covariate_set.name} vs "
                        f"{full.covariate_set.name}: different complete cases"
                    )
                    continue
                comparisons.append(compare_models(restricted, full))
        return comparisons

    def format_model_summaries(self) -> str:
        """Printable regression summaries, one block per fitted variant."""
        fits = self.results.get("models", {})
        blocks = []
        for name, fit in fits.items():
            blocks.append(f"=== {name} (baseline: {fit.baseline}) ===\n{fit.summary()}")
        for comparison in self.results.get("model_comparisons", []):
            blocks.append(
                f"LR test {comparison.restricted} vs {comparison.full}: "
                f"chi2({comparison.df}) = {comparison.statistic:.2f}, "
                f"{format_pvalue(comparison.p_value)}"
            )
        return "\n\n".join(blocks)

    def generate_summary(self) -> Dict[str, Any]:
        """
        Generate a summary of all completed steps.

        Returns
        -------
        Dict[str, Any]
            Summary statistics and results
        """
        summary = {
            "dataset": dict(self.data.metadata) if self.data else {},
        }

        if self.prepared is not None:
            summary["wrangling"] = {
                "n_filtered_participants": len(self.prepared.filtered),
                "n_observations": len(self.prepared.observations),
                "value_col": self.prepared.value_col,
                "join": self.prepared.join_report.to_dict(),
            }

        if "models" in self.results:
            summary["models"] = {
                name: fit.to_dict() for name, fit in self.results["models"].items()
            }
            summary["model_comparisons"] = [
                c.to_dict() for c in self.results.get("model_comparisons", [])
            ]

        return summary

    def export_results(self, output_dir: Path) -> None:
        """
        Export all results to files.

        Parameters
        ----------
        output_dir : Path
            Directory to save results
        """
        output_dir = ensure_directory(output_dir)

        if self.prepared is not None:
            export_for_analysis(self.prepared.observations, output_dir / "observations.csv")

        for name, table in self.results.get("aggregates", {}).items():
            export_for_analysis(table, output_dir / f"{name}.csv")

        for name, fit in self.results.get("models", {}).items():
            fit.coefficients.to_csv(output_dir / f"model_{name}.csv", index_label="term")

        save_json(self.generate_summary(), output_dir / "summary.json")
        logger.info(f"Results exported to {output_dir}")


def run_survey_analysis(
    participants_path: Path,
    metadata_path: Path,
    output_dir: Path,
    question: Optional[str] = None,
    config: Optional[AppConfig] = None
) -> Dict[str, Any]:
    """
    Run the complete walkthrough pipeline.

    Parameters
    ----------
    participants_path : Path
        Wide participant file
    metadata_path : Path
        Question metadata file
    output_dir : Path
        Directory for output files
    question : Optional[str]
        Target question. Uses config default if None.
    config : Optional[AppConfig]
        Application configuration. Uses default if None.

    Returns
    -------
    Dict[str, Any]
        Complete analysis summary
    """
    analyzer = SurveyAnalyzer(config)

    analyzer.load_data(participants_path, metadata_path)
    analyzer.prepare()
    analyzer.compute_aggregates(question)
    analyzer.fit_models(question=question)
    analyzer.export_results(Path(output_dir))

    return analyzer.generate_summary()
