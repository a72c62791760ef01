"""
Configuration settings for the L2 survey wrangling walkthrough.

This module contains all configurable parameters for the walkthrough,
including survey column names, the language allow-list, modelling
defaults and figure settings.

Values can be overridden through environment variables (or a ``.env``
file next to the project root).
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

# Base paths
PROJECT_ROOT = Path(__file__).parent.parent.absolute()
DATA_DIR = PROJECT_ROOT / "data"
RAW_DATA_DIR = DATA_DIR / "raw"
RESULTS_DIR = DATA_DIR / "results"
FIGURES_DIR = PROJECT_ROOT / "figures"


@dataclass
class SurveyConfig:
    """Column layout of the survey files and the wrangling parameters.

    The wide participant file carries one row per respondent and one
    ``q<index>[_<sub-item>]`` column per question. The metadata file is keyed
    on a column whose name differs from the long-form key column.
    """

    # Wide participant file
    id_col: str = "id"
    language_col: str = "primelangs"
    age_col: str = "age"
    exposure_col: str = "Eng_start"
    question_prefix: str = "q"

    # Long form produced by the reshape
    key_col: str = "item"
    value_col: str = "correct"

    # Question metadata file
    metadata_key_col: str = "question"

    # Shared non-key columns are kept from both sides with these suffixes
    join_suffixes: tuple = ("_response", "_key")

    # Derived columns
    duration_col: str = "learning_duration"
    total_col: str = "total_score"

    # Languages retained by the filter stage
    allowed_languages: list = field(default_factory=lambda: [
        "Spanish",
        "French",
        "German",
    ])

    # Question used for the accuracy curve and the model fits
    target_question: str = field(
        default_factory=lambda: os.getenv("L2SURVEY_TARGET_QUESTION", "q1")
    )


@dataclass
class ModelConfig:
    """Configuration for the logistic regression fits."""

    # Reference level of the language covariate
    baseline_language: str = field(
        default_factory=lambda: os.getenv("L2SURVEY_BASELINE_LANGUAGE", "Spanish")
    )

    # IRLS settings
    max_iterations: int = 100

    alpha: float = 0.05


@dataclass
class VisualizationConfig:
    """Configuration for figure generation."""

    single_column_width: float = 3.5  # inches
    double_column_width: float = 7.0  # inches
    height: float = 3.0  # inches

    # One colour per retained language (colorblind-friendly)
    colors: dict = field(default_factory=lambda: {
        "Spanish": "#2166AC",  # Blue
        "French": "#B2182B",   # Red
        "German": "#4DAF4A",   # Green
        "neutral": "#666666",  # Gray
    })

    # Fraction of points used for each LOWESS estimate
    lowess_frac: float = 0.6

    output_formats: list = field(default_factory=lambda: ["png", "pdf"])
    dpi: int = 300


@dataclass
class AppConfig:
    """Main application configuration."""

    data_dir: Path = field(
        default_factory=lambda: Path(os.getenv("L2SURVEY_DATA_DIR", str(RAW_DATA_DIR)))
    )
    results_dir: Path = field(
        default_factory=lambda: Path(os.getenv("L2SURVEY_RESULTS_DIR", str(RESULTS_DIR)))
    )
    figures_dir: Path = field(
        default_factory=lambda: Path(os.getenv("L2SURVEY_FIGURES_DIR", str(FIGURES_DIR)))
    )

    participants_file: str = "data.csv"
    metadata_file: str = "questions.csv"

    log_level: str = field(
        default_factory=lambda: os.getenv("L2SURVEY_LOG_LEVEL", "INFO").upper()
    )

    # Sub-configurations
    survey: SurveyConfig = field(default_factory=SurveyConfig)
    model: ModelConfig = field(default_factory=ModelConfig)
    visualization: VisualizationConfig = field(default_factory=VisualizationConfig)

    @property
    def participants_path(self) -> Path:
        return self.data_dir / self.participants_file

    @property
    def metadata_path(self) -> Path:
        return self.data_dir / self.metadata_file


# Global configuration instance
config = AppConfig()


def get_config() -> AppConfig:
    """Get the global configuration instance."""
    return config


def reload_config(env_file: Optional[Path] = None) -> AppConfig:
    """Reload configuration from environment."""
    global config
    load_dotenv(dotenv_path=env_file, override=True)
    config = AppConfig()
    return config
