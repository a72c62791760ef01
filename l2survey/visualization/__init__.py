"""
Visualization module for the L2 survey walkthrough.

This module provides the walkthrough figures:
- Language frequency bar chart
- Accuracy vs. learning duration line chart
- LOWESS-smoothed accuracy curve
"""

from .figures import (
    FigureGenerator,
    create_language_frequency_plot,
    create_accuracy_curve_plot,
    create_smoothed_accuracy_plot,
)

__all__ = [
    "FigureGenerator",
    "create_language_frequency_plot",
    "create_accuracy_curve_plot",
    "create_smoothed_accuracy_plot",
]
