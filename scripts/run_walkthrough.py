#!/usr/bin/env python3
"""
Step through the L2 survey wrangling walkthrough.

Each stage prints what it did so the intermediate tables can be inspected
before moving on: load, filter, reshape, join, aggregate, model, plot.
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import logging
from datetime import datetime

from config.settings import get_config
from l2survey.analysis.pipeline import SurveyAnalyzer
from l2survey.utils.helpers import format_percentage
from l2survey.visualization.figures import FigureGenerator

logging.basicConfig(
    level=get_config().log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

config = get_config()
survey = config.survey

print("\n" + "=" * 70)
print("L2 SURVEY: DATA WRANGLING WALKTHROUGH")
print("=" * 70)
print(f"Started at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
print("=" * 70 + "\n")

if not config.participants_path.exists():
    print(f"⚠ Survey data not found at {config.participants_path}.")
    print("   Run: python scripts/generate_synthetic_data.py")
    sys.exit(1)

analyzer = SurveyAnalyzer()

# =============================================================================
# STEP 1: LOAD
# =============================================================================
print("\n[1/6] Loading the survey")
print("-" * 70)
data = analyzer.load_data()
print(f"✓ {data.metadata['n_participants']:,} participants, "
      f"{data.metadata['n_questions']} question columns, "
      f"{data.metadata['n_languages']} first languages")

# =============================================================================
# STEP 2-4: FILTER, RESHAPE, JOIN
# =============================================================================
print("\n[2/6] Filter -> reshape -> join")
print("-" * 70)
prepared = analyzer.prepare()
report = prepared.join_report
print(f"✓ Kept {len(prepared.filtered):,} participants "
      f"({', '.join(survey.allowed_languages)})")
print(f"✓ Long table: {report.left_rows:,} observations")
print(f"✓ Joined: {report.matched_rows:,} rows, {report.dropped_rows:,} dropped")
if report.unmatched_keys:
    print(f"⚠ Questions without metadata: {', '.join(report.unmatched_keys)}")
print(prepared.observations.head(10).to_string(index=False))

# =============================================================================
# STEP 5: AGGREGATE
# =============================================================================
print("\n[3/6] Aggregates")
print("-" * 70)
aggregates = analyzer.compute_aggregates()
totals = aggregates["total_scores"]
print(f"✓ Mean total score: {totals[survey.total_col].mean():.2f}")
for _, row in aggregates["accuracy_by_question"].iterrows():
    if row[survey.key_col] == survey.target_question:
        print(f"  {row[survey.language_col]:>8}: {format_percentage(row['accuracy'])} "
              f"correct on {survey.target_question} (n={row['n']})")

# =============================================================================
# STEP 6: MODEL
# =============================================================================
print("\n[4/6] Logistic regression")
print("-" * 70)
analyzer.fit_models()
print(analyzer.format_model_summaries())

# =============================================================================
# PLOTS
# =============================================================================
print("\n[5/6] Figures")
print("-" * 70)
generated = FigureGenerator(output_dir=config.figures_dir).generate_all_figures(aggregates)
for name, paths in generated.items():
    print(f"  - {name}: {len(paths)} formats")

# =============================================================================
# EXPORT
# =============================================================================
print("\n[6/6] Export")
print("-" * 70)
analyzer.export_results(config.results_dir)
print(f"✓ Results saved to: {config.results_dir}/")

print("\n" + "=" * 70)
print("WALKTHROUGH COMPLETE")
print("=" * 70 + "\n")
