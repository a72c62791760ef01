"""
Unit tests for the group-by reductions.
"""

import pandas as pd
import pytest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from config.settings import SurveyConfig
from l2survey.analysis.aggregation import (
    accuracy_by_duration,
    accuracy_by_question,
    add_learning_duration,
    attach_total_scores,
    total_scores,
)


@pytest.fixture
def observations():
    languages = pd.Categorical(
        ["Spanish"] * 4 + ["Spanish"] * 4 + ["French"] * 4,
        categories=["Spanish", "French", "German"],
    )
    return pd.DataFrame({
        "id": [1] * 4 + [2] * 4 + [3] * 4,
        "primelangs": languages,
        "age": [30] * 4 + [30] * 4 + [25] * 4,
        "Eng_start": [20] * 4 + [20] * 4 + [20] * 4,
        "item": ["q1", "q2", "q3", "q4"] * 3,
        "correct": [1, 1, 0, 1, 0, 0, 1, 1, 1, 1, 1, 1],
    })


class TestLearningDuration:
    """Tests for the derived learning duration."""

    def test_duration_is_age_minus_exposure(self, observations):
        df = add_learning_duration(observations)
        assert (df["learning_duration"] == df["age"] - df["Eng_start"]).all()

    def test_input_not_modified(self, observations):
        add_learning_duration(observations)
        assert "learning_duration" not in observations.columns


class TestTotalScores:
    """Tests for per-subject totals."""

    def test_total_is_sum_of_answers(self, observations):
        """Each participant's total equals the sum of their answers."""
        totals = total_scores(observations).set_index("id")["total_score"]
        expected = observations.groupby("id")["correct"].sum()
        assert totals.to_dict() == expected.to_dict() == {1: 3, 2: 2, 3: 4}

    def test_one_row_per_participant(self, observations):
        totals = total_scores(observations)
        assert len(totals) == 3
        assert list(totals.columns) == ["id", "primelangs", "total_score"]

    def test_empty_groups_absent(self, observations):
        """Declared but unobserved languages produce no rows."""
        totals = total_scores(observations)
        assert "German" not in set(totals["primelangs"].astype(str))

    def test_reaggregation_is_idempotent(self, observations):
        """Summing the totals again under the same grouping changes nothing."""
        totals = total_scores(observations)
        again = total_scores(totals, value_col="total_score")
        pd.testing.assert_frame_equal(again, totals)

    def test_attach_total_scores(self, observations):
        """Totals are joined back onto every observation."""
        df = attach_total_scores(observations, total_scores(observations))
        assert len(df) == len(observations)
        assert df.loc[df["id"] == 3, "total_score"].eq(4).all()
        assert df.loc[df["id"] == 1, "total_score"].eq(3).all()


class TestAccuracyCurves:
    """Tests for the accuracy-by-experience reductions."""

    def test_accuracy_by_duration(self, observations):
        """Mean correctness on one question per language and duration."""
        df = add_learning_duration(observations)
        curve = accuracy_by_duration(df, question="q1")

        assert len(curve) == 2
        by_lang = curve.set_index("primelangs")
        assert by_lang.loc["Spanish", "learning_duration"] == 10
        assert by_lang.loc["Spanish", "accuracy"] == pytest.approx(0.5)
        assert by_lang.loc["Spanish", "n"] == 2
        assert by_lang.loc["French", "learning_duration"] == 5
        assert by_lang.loc["French", "accuracy"] == pytest.approx(1.0)

    def test_other_questions_excluded(self, observations):
        df = add_learning_duration(observations)
        curve = accuracy_by_duration(df, question="q3")
        assert curve.set_index("primelangs").loc["Spanish", "accuracy"] == pytest.approx(0.5)

    def test_unknown_question_gives_empty_curve(self, observations):
        df = add_learning_duration(observations)
        assert accuracy_by_duration(df, question="q99").empty

    def test_accuracy_by_question(self, observations):
        table = accuracy_by_question(observations)
        assert len(table) == 8
        row = table[(table["item"] == "q2") & (table["primelangs"] == "Spanish")]
        assert row["accuracy"].iloc[0] == pytest.approx(0.5)


class TestCustomColumnLayout:
    """Reductions follow the column names of the configuration they are given."""

    @pytest.fixture
    def survey(self):
        return SurveyConfig(id_col="pid", language_col="l1", total_col="score")

    @pytest.fixture
    def renamed(self, observations):
        return observations.rename(columns={"id": "pid", "primelangs": "l1"})

    def test_total_scores(self, renamed, survey):
        totals = total_scores(renamed, config=survey)
        assert list(totals.columns) == ["pid", "l1", "score"]
        assert totals.set_index("pid")["score"].to_dict() == {1: 3, 2: 2, 3: 4}

    def test_attach_and_curves(self, renamed, survey):
        df = add_learning_duration(renamed, config=survey)
        df = attach_total_scores(df, total_scores(df, config=survey), config=survey)
        assert df.loc[df["pid"] == 3, "score"].eq(4).all()

        curve = accuracy_by_duration(df, "q1", config=survey)
        assert list(curve.columns) == ["l1", "learning_duration", "accuracy", "n"]

        by_question = accuracy_by_question(df, config=survey)
        assert list(by_question.columns) == ["item", "l1", "accuracy", "n"]

    def test_suffixed_value_column(self, observations):
        """Answers renamed by the join are summed under their new name."""
        joined = observations.rename(columns={"correct": "correct_response"})
        totals = total_scores(joined, value_col="correct_response")
        assert totals.set_index("id")["total_score"].to_dict() == {1: 3, 2: 2, 3: 4}
