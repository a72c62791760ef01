"""
Synthetic survey data for demos and tests.

The generated tables follow the layout of the real survey files but the
numbers are arbitrary. They MUST NOT be used to draw conclusions about
second-language acquisition.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Tuple

import numpy as np
import pandas as pd

from config.settings import get_config

logger = logging.getLogger(__name__)

# Relative frequency of first languages in the demo sample
DEMO_LANGUAGES = {
    "English": 0.30,
    "German": 0.18,
    "Spanish": 0.16,
    "French": 0.12,
    "Portuguese": 0.10,
    "Russian": 0.08,
    "Chinese": 0.06,
}

# Additive log-odds shift per language
LANGUAGE_EFFECTS = {
    "German": 0.6,
    "French": 0.2,
    "Spanish": 0.0,
}

CONSTRUCTS = [
    ("plural agreement", "Subject and verb agree in number"),
    ("past tense", "Irregular past tense form"),
    ("articles", "Definite article with unique referent"),
    ("relative clauses", "Object relative clause attachment"),
    ("question formation", "Do-support in yes/no questions"),
    ("prepositions", "Preposition choice after a verb"),
]


def generate_demo_survey(
    n_participants: int = 300,
    n_questions: int = 8,
    n_sub_items: int = 3,
    seed: Optional[int] = 12345
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Generate a wide participant table and its question metadata.

    The last question is split into ``n_sub_items`` sub-items
    (``q8_1``, ``q8_2``, ...).

    Parameters
    ----------
    n_participants : int
        Number of simulated respondents
    n_questions : int
        Number of questions
    n_sub_items : int
        Sub-items of the last question (0 for none)
    seed : Optional[int]
        Random seed for reproducibility

    Returns
    -------
    Tuple[pd.DataFrame, pd.DataFrame]
        (participants, question_metadata)
    """
    survey = get_config().survey
    rng = np.random.default_rng(seed)

    languages = rng.choice(
        list(DEMO_LANGUAGES),
        size=n_participants,
        p=list(DEMO_LANGUAGES.values()),
    )
    age = rng.integers(18, 71, size=n_participants)
    exposure = np.minimum(rng.integers(0, 30, size=n_participants), age - 1)
    duration = age - exposure

    keys = [f"{survey.question_prefix}{i}" for i in range(1, n_questions)]
    last = f"{survey.question_prefix}{n_questions}"
    if n_sub_items:
        keys += [f"{last}_{j}" for j in range(1, n_sub_items + 1)]
    else:
        keys.append(last)

    participants = pd.DataFrame({
        survey.id_col: np.arange(1, n_participants + 1),
        survey.language_col: languages,
        survey.age_col: age,
        survey.exposure_col: exposure,
    })

    lang_shift = np.array([LANGUAGE_EFFECTS.get(lang, -0.3) for lang in languages])
    for difficulty, key in zip(rng.normal(0, 0.8, size=len(keys)), keys):
        log_odds = (
            -0.5
            + difficulty
            + 0.04 * duration
            - 0.05 * exposure
            + lang_shift
        )
        prob = 1 / (1 + np.exp(-log_odds))
        participants[key] = rng.binomial(1, prob)

    metadata = pd.DataFrame({
        survey.metadata_key_col: keys,
        "construct": [CONSTRUCTS[i % len(CONSTRUCTS)][0] for i in range(len(keys))],
        "description": [CONSTRUCTS[i % len(CONSTRUCTS)][1] for i in range(len(keys))],
    })

    logger.info(
        f"Generated {n_participants} demo participants with {len(keys)} questions"
    )
    return participants, metadata


def write_demo_survey(
    output_dir: Path,
    n_participants: int = 300,
    seed: Optional[int] = 12345
) -> Tuple[Path, Path]:
    """Write the demo tables as CSV files named as in the configuration."""
    app = get_config()
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    participants, metadata = generate_demo_survey(n_participants=n_participants, seed=seed)

    participants_path = output_dir / app.participants_file
    metadata_path = output_dir / app.metadata_file
    participants.to_csv(participants_path, index=False)
    metadata.to_csv(metadata_path, index=False)

    logger.info(f"Demo survey written to {output_dir}")
    return participants_path, metadata_path
