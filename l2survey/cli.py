"""
Command-line interface for the L2 survey walkthrough.

This is a convenience wrapper around :class:`SurveyAnalyzer`. The walkthrough
itself is meant to be run stage by stage from Python (see
``scripts/run_walkthrough.py``); the commands here only chain those stages
with the default configuration.

Provides commands for:
- Running the full analysis
- Generating figures
- Writing a synthetic demo survey
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from config.settings import get_config

logger = logging.getLogger(__name__)


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def build_parser() -> argparse.ArgumentParser:
    config = get_config()

    parser = argparse.ArgumentParser(
        description="L2 Survey Wrangling Walkthrough CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        "--log-level",
        default=config.log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Analysis command
    analysis_parser = subparsers.add_parser("analyze", help="Run the full analysis")
    analysis_parser.add_argument(
        "--participants",
        type=Path,
        default=config.participants_path,
        help="Wide participant file"
    )
    analysis_parser.add_argument(
        "--questions",
        type=Path,
        default=config.metadata_path,
        help="Question metadata file"
    )
    analysis_parser.add_argument(
        "--question",
        default=config.survey.target_question,
        help="Target question for the accuracy curve and models"
    )
    analysis_parser.add_argument(
        "--output",
        type=Path,
        default=config.results_dir,
        help="Output directory for results"
    )
    analysis_parser.add_argument(
        "--timestamped",
        action="store_true",
        help="Write results into a timestamped subdirectory"
    )

    # Figures command
    figures_parser = subparsers.add_parser("figures", help="Generate figures")
    figures_parser.add_argument(
        "--participants",
        type=Path,
        default=config.participants_path,
        help="Wide participant file"
    )
    figures_parser.add_argument(
        "--questions",
        type=Path,
        default=config.metadata_path,
        help="Question metadata file"
    )
    figures_parser.add_argument(
        "--question",
        default=config.survey.target_question,
        help="Target question for the accuracy curve"
    )
    figures_parser.add_argument(
        "--output",
        type=Path,
        default=config.figures_dir,
        help="Output directory for figures"
    )
    figures_parser.add_argument(
        "--format",
        choices=["pdf", "png", "svg", "all"],
        default="png",
        help="Output format"
    )

    # Demo data command
    demo_parser = subparsers.add_parser("demo-data", help="Write a synthetic demo survey")
    demo_parser.add_argument(
        "--n-participants",
        type=int,
        default=300,
        help="Number of simulated respondents"
    )
    demo_parser.add_argument(
        "--seed",
        type=int,
        help="Random seed for reproducibility"
    )
    demo_parser.add_argument(
        "--output",
        type=Path,
        default=config.data_dir,
        help="Output directory"
    )

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log_level)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    # Route to appropriate handler
    if args.command == "analyze":
        run_analysis(args)
    elif args.command == "figures":
        run_figures(args)
    elif args.command == "demo-data":
        run_demo_data(args)


def run_analysis(args):
    """Run analysis pipeline."""
    from .analysis.pipeline import SurveyAnalyzer
    from .utils.helpers import get_timestamp

    output = args.output / get_timestamp() if args.timestamped else args.output
    logger.info(f"Running analysis for question {args.question}...")

    analyzer = SurveyAnalyzer()
    analyzer.load_data(args.participants, args.questions)
    analyzer.prepare()
    analyzer.compute_aggregates(args.question)
    analyzer.fit_models(question=args.question)

    print(analyzer.format_model_summaries())

    analyzer.export_results(output)
    logger.info(f"Analysis complete. Results saved to {output}")


def run_figures(args):
    """Generate walkthrough figures."""
    from .analysis.pipeline import SurveyAnalyzer
    from .visualization.figures import FigureGenerator

    logger.info("Generating figures...")

    analyzer = SurveyAnalyzer()
    analyzer.load_data(args.participants, args.questions)
    analyzer.prepare()
    aggregates = analyzer.compute_aggregates(args.question)

    formats = ["pdf", "png", "svg"] if args.format == "all" else [args.format]
    generator = FigureGenerator(output_dir=args.output)
    figures = generator.generate_all_figures(aggregates, formats=formats)

    logger.info(f"Generated {len(figures)} figures in {args.output}")


def run_demo_data(args):
    """Write synthetic demo data."""
    from .data.synthetic import write_demo_survey

    logger.warning("Writing SYNTHETIC survey data; not for research conclusions")
    participants_path, metadata_path = write_demo_survey(
        args.output,
        n_participants=args.n_participants,
        seed=args.seed,
    )
    logger.info(f"Demo files: {participants_path}, {metadata_path}")


if __name__ == "__main__":
    main()
