"""
L2 Survey Wrangling Walkthrough

A step-by-step data wrangling exercise on a public second-language-acquisition
survey: reshaping wide answers to long form, joining question metadata,
filtering, aggregating and fitting a logistic regression.

Steps:
    - Load the participant and question metadata files
    - Keep Spanish, French and German first-language speakers
    - Reshape question columns to one row per participant and question
    - Join the question metadata
    - Aggregate per-subject totals and accuracy by learning duration
    - Fit logistic regressions with Spanish as the baseline language

Modules:
    - data: Loading and wrangling stages
    - analysis: Aggregation, regression and the end-to-end pipeline
    - visualization: Walkthrough figures
    - utils: Utility functions
"""

__version__ = "1.0.0"

from config.settings import get_config, config

__all__ = [
    "__version__",
    "get_config",
    "config",
]
