"""
Figures for the L2 survey walkthrough.

This module draws:
- a bar chart of participant counts per first language, ranked descending
- a line chart of accuracy vs. learning duration, one line per language
- the same curve smoothed with LOWESS

Figures are for inspection only; their layout is not a stable interface.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

import matplotlib
matplotlib.use('Agg')  # Non-interactive backend
import matplotlib.pyplot as plt
from statsmodels.nonparametric.smoothers_lowess import lowess

from config.settings import get_config

plt.rcParams.update({
    'font.family': 'sans-serif',
    'font.sans-serif': ['Arial', 'DejaVu Sans'],
    'font.size': 9,
    'axes.titlesize': 10,
    'axes.labelsize': 9,
    'xtick.labelsize': 8,
    'ytick.labelsize': 8,
    'legend.fontsize': 8,
    'savefig.bbox': 'tight',
    'savefig.pad_inches': 0.1,
})

logger = logging.getLogger(__name__)


@dataclass
class FigureConfig:
    """Configuration for a single figure."""

    width: float = None
    height: float = None

    def __post_init__(self):
        viz = get_config().visualization
        if self.width is None:
            self.width = viz.single_column_width
        if self.height is None:
            self.height = viz.height


def _language_color(language: str) -> str:
    colors = get_config().visualization.colors
    return colors.get(str(language), colors['neutral'])


def _despine(ax: plt.Axes) -> None:
    ax.spines['top'].set_visible(False)
    ax.spines['right'].set_visible(False)


class FigureGenerator:
    """Saves the walkthrough figures to an output directory."""

    def __init__(self, output_dir: Optional[Path] = None):
        """
        Initialize the generator.

        Parameters
        ----------
        output_dir : Optional[Path]
            Directory for saving figures. Uses config default if None.
        """
        self.output_dir = Path(output_dir or get_config().figures_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def save_figure(
        self,
        fig: plt.Figure,
        name: str,
        formats: Optional[List[str]] = None
    ) -> List[Path]:
        """
        Save figure in multiple formats and close it.

        Parameters
        ----------
        fig : plt.Figure
            Figure to save
        name : str
            Base filename (without extension)
        formats : Optional[List[str]]
            Output formats

        Returns
        -------
        List[Path]
            Paths to saved files
        """
        viz = get_config().visualization
        if formats is None:
            formats = viz.output_formats

        saved_paths = []
        for fmt in formats:
            path = self.output_dir / f"{name}.{fmt}"
            fig.savefig(path, format=fmt, dpi=viz.dpi, bbox_inches='tight')
            saved_paths.append(path)
            logger.info(f"Saved figure: {path}")

        plt.close(fig)
        return saved_paths

    def generate_all_figures(
        self,
        aggregates: Dict[str, pd.DataFrame],
        formats: Optional[List[str]] = None
    ) -> Dict[str, List[Path]]:
        """
        Generate every figure the aggregates allow.

        Parameters
        ----------
        aggregates : Dict[str, pd.DataFrame]
            Output of ``SurveyAnalyzer.compute_aggregates``
        formats : Optional[List[str]]
            Output formats

        Returns
        -------
        Dict[str, List[Path]]
            Mapping of figure names to saved paths
        """
        figures = {}

        if 'language_frequencies' in aggregates:
            fig = create_language_frequency_plot(aggregates['language_frequencies'])
            figures['language_frequencies'] = self.save_figure(
                fig, 'language_frequencies', formats
            )

        curve = aggregates.get('accuracy_curve')
        if curve is not None and not curve.empty:
            fig = create_accuracy_curve_plot(curve)
            figures['accuracy_curve'] = self.save_figure(fig, 'accuracy_curve', formats)

            fig = create_smoothed_accuracy_plot(curve)
            figures['accuracy_curve_smoothed'] = self.save_figure(
                fig, 'accuracy_curve_smoothed', formats
            )

        return figures


def create_language_frequency_plot(
    frequencies: pd.DataFrame,
    top_n: int = 15,
    config: Optional[FigureConfig] = None
) -> plt.Figure:
    """
    Bar chart of participants per first language, most frequent first.

    Parameters
    ----------
    frequencies : pd.DataFrame
        Output of ``language_frequencies``: a language column and ``n``
    top_n : int
        Number of languages to show
    config : Optional[FigureConfig]
        Figure configuration

    Returns
    -------
    plt.Figure
        The figure object
    """
    if config is None:
        config = FigureConfig(width=get_config().visualization.double_column_width)

    language_col = [c for c in frequencies.columns if c != 'n'][0]
    data = frequencies.sort_values('n', ascending=False, kind='mergesort').head(top_n)

    fig, ax = plt.subplots(figsize=(config.width, config.height))

    x = np.arange(len(data))
    ax.bar(
        x,
        data['n'],
        color=[_language_color(lang) for lang in data[language_col]],
        edgecolor='none',
    )

    ax.set_xticks(x)
    ax.set_xticklabels(data[language_col], rotation=45, ha='right')
    ax.set_ylabel('Participants')
    ax.set_title('First language of respondents')
    _despine(ax)

    plt.tight_layout()
    return fig


def create_accuracy_curve_plot(
    curve: pd.DataFrame,
    config: Optional[FigureConfig] = None
) -> plt.Figure:
    """
    Line chart of mean accuracy by years of learning, per language.

    Parameters
    ----------
    curve : pd.DataFrame
        Output of ``accuracy_by_duration``
    config : Optional[FigureConfig]
        Figure configuration

    Returns
    -------
    plt.Figure
        The figure object
    """
    if config is None:
        config = FigureConfig()

    survey = get_config().survey
    fig, ax = plt.subplots(figsize=(config.width, config.height))

    for language, group in curve.groupby(survey.language_col, observed=True):
        group = group.sort_values(survey.duration_col)
        ax.plot(
            group[survey.duration_col],
            group['accuracy'],
            marker='o',
            markersize=2,
            linewidth=1,
            color=_language_color(language),
            label=str(language),
        )

    ax.set_xlabel('Learning duration (years)')
    ax.set_ylabel('Accuracy')
    ax.set_ylim(-0.05, 1.05)
    ax.legend(frameon=False)
    _despine(ax)

    plt.tight_layout()
    return fig


def create_smoothed_accuracy_plot(
    curve: pd.DataFrame,
    frac: Optional[float] = None,
    config: Optional[FigureConfig] = None
) -> plt.Figure:
    """
    LOWESS-smoothed accuracy by years of learning, per language.

    Raw group means are drawn as faint points under the smoothed line.
    Languages with fewer than three distinct durations are drawn as points
    only.

    Parameters
    ----------
    curve : pd.DataFrame
        Output of ``accuracy_by_duration``
    frac : Optional[float]
        LOWESS span. Uses config default if None.
    config : Optional[FigureConfig]
        Figure configuration

    Returns
    -------
    plt.Figure
        The figure object
    """
    if config is None:
        config = FigureConfig()

    survey = get_config().survey
    frac = frac or get_config().visualization.lowess_frac

    fig, ax = plt.subplots(figsize=(config.width, config.height))

    for language, group in curve.groupby(survey.language_col, observed=True):
        color = _language_color(language)
        x = group[survey.duration_col].to_numpy(dtype=float)
        y = group['accuracy'].to_numpy(dtype=float)

        ax.scatter(x, y, s=4, alpha=0.3, color=color, edgecolors='none')

        if len(np.unique(x)) < 3:
            logger.debug(f"Too few durations to smooth {language}")
            continue

        smoothed = lowess(y, x, frac=frac, return_sorted=True)
        ax.plot(smoothed[:, 0], smoothed[:, 1], linewidth=1.2, color=color, label=str(language))

    ax.set_xlabel('Learning duration (years)')
    ax.set_ylabel('Accuracy (LOWESS)')
    ax.set_ylim(-0.05, 1.05)
    if ax.get_legend_handles_labels()[0]:
        ax.legend(frameon=False)
    _despine(ax)

    plt.tight_layout()
    return fig
