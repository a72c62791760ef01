"""
Data module for the L2 survey walkthrough.

This module provides:
- Loading of the participant and question metadata files
- Filter, reshape and join stages
- Export functionality
"""

from .loading import (
    load_participants,
    load_question_metadata,
    question_columns,
)

from .preprocessing import (
    JoinReport,
    filter_languages,
    language_frequencies,
    reshape_to_long,
    pivot_to_wide,
    join_question_metadata,
    joined_column_name,
    export_for_analysis,
)

from .synthetic import generate_demo_survey, write_demo_survey

__all__ = [
    "load_participants",
    "load_question_metadata",
    "question_columns",
    "JoinReport",
    "filter_languages",
    "language_frequencies",
    "reshape_to_long",
    "pivot_to_wide",
    "join_question_metadata",
    "joined_column_name",
    "export_for_analysis",
    "generate_demo_survey",
    "write_demo_survey",
]
