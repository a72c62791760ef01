"""
Test suite for the L2 survey wrangling walkthrough.

This package contains unit tests and integration tests for:
- File loading
- Filter, reshape and join stages
- Aggregations
- Logistic regression
- The end-to-end pipeline, CLI and figures
"""
