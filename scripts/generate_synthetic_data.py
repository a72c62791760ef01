#!/usr/bin/env python3
"""
Generate DEMO survey data for development and testing ONLY.

WARNING: This script generates SYNTHETIC survey responses. They follow the
layout of the real survey files but the numbers are arbitrary and MUST NOT be
used to draw conclusions about second-language acquisition.

Use this only for:
- Trying out the walkthrough without downloading the survey
- Testing that the analysis code works correctly
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import argparse
import warnings

from config.settings import get_config
from l2survey.data.synthetic import write_demo_survey

warnings.warn(
    "\n\n"
    "=" * 60 + "\n"
    "WARNING: GENERATING SYNTHETIC DEMO SURVEY\n"
    "This is NOT real survey data!\n"
    "=" * 60 + "\n",
    UserWarning
)


def main():
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--n-participants", type=int, default=300)
    parser.add_argument("--seed", type=int, default=12345)
    parser.add_argument("--output", type=Path, default=get_config().data_dir)
    args = parser.parse_args()

    participants_path, metadata_path = write_demo_survey(
        args.output,
        n_participants=args.n_participants,
        seed=args.seed,
    )
    print(f"Participants: {participants_path}")
    print(f"Questions:    {metadata_path}")


if __name__ == "__main__":
    main()
