"""
Unit tests for the filter, reshape and join stages.
"""

import logging

import pandas as pd
import pytest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from l2survey.data.preprocessing import (
    filter_languages,
    join_question_metadata,
    joined_column_name,
    language_frequencies,
    pivot_to_wide,
    reshape_to_long,
)

ALLOWED = ["Spanish", "French", "German"]


@pytest.fixture
def wide():
    return pd.DataFrame({
        "id": [3, 1, 2, 4, 5],
        "primelangs": ["Spanish", "French", "Spanish", "English", "German"],
        "age": [30, 25, 40, 35, 50],
        "Eng_start": [10, 5, 20, 0, 12],
        "q1": [1, 0, 1, 1, 0],
        "q2": [1, 1, 0, 1, 1],
        "q3_1": [0, 1, 1, 0, 1],
    })


@pytest.fixture
def metadata():
    return pd.DataFrame({
        "question": ["q1", "q2", "q3_1"],
        "construct": ["articles", "past tense", "plural agreement"],
        "description": ["a", "b", "c"],
    })


class TestFilterLanguages:
    """Tests for the language allow-list filter."""

    def test_keeps_only_allowed(self, wide):
        """Every retained row has an allowed language."""
        df = filter_languages(wide, ALLOWED)
        assert len(df) == 4
        assert df["primelangs"].isin(ALLOWED).all()
        assert 4 not in df["id"].tolist()

    def test_categories_are_present_allowed_values(self, wide):
        """Categories equal the allow-list values found in the input."""
        df = filter_languages(wide, ["Spanish", "French", "Italian"])
        assert list(df["primelangs"].cat.categories) == ["Spanish", "French"]
        assert set(df["primelangs"].unique()) == {"Spanish", "French"}

    def test_unused_categories_dropped(self, wide):
        """An already-categorical column loses its empty categories."""
        data = wide.assign(
            primelangs=pd.Categorical(
                wide["primelangs"],
                categories=["Spanish", "French", "German", "English", "Dutch"],
            )
        )
        df = filter_languages(data[data["primelangs"] != "German"], ALLOWED)
        assert list(df["primelangs"].cat.categories) == ["Spanish", "French"]

    def test_empty_result_allowed(self, wide):
        """No match gives an empty table, not an error."""
        df = filter_languages(wide, ["Italian"])
        assert df.empty
        assert list(df["primelangs"].cat.categories) == []

    def test_input_not_modified(self, wide):
        """The input table is left untouched."""
        before = wide.copy()
        filter_languages(wide, ALLOWED)
        pd.testing.assert_frame_equal(wide, before)


class TestLanguageFrequencies:
    """Tests for language counts."""

    def test_ranked_descending(self, wide):
        """Counts come most frequent first."""
        freq = language_frequencies(wide)
        assert freq["n"].is_monotonic_decreasing
        assert freq.iloc[0]["primelangs"] == "Spanish"
        assert freq.iloc[0]["n"] == 2

    def test_top_n(self, wide):
        freq = language_frequencies(wide, top_n=2)
        assert len(freq) == 2


class TestReshapeToLong:
    """Tests for the wide-to-long reshape."""

    def test_row_count(self, wide):
        """R rows x C question columns give R*C observations."""
        long_df = reshape_to_long(filter_languages(wide, ALLOWED))
        assert len(long_df) == 4 * 3

    def test_sorted_by_participant(self, wide):
        """Rows are grouped by participant, not by question."""
        long_df = reshape_to_long(wide)
        assert long_df["id"].is_monotonic_increasing
        first = long_df[long_df["id"] == 1]
        assert first["item"].tolist() == ["q1", "q2", "q3_1"]
        assert first["correct"].tolist() == [0, 1, 1]

    def test_participant_question_pairs_unique(self, wide):
        long_df = reshape_to_long(wide)
        assert not long_df.duplicated(subset=["id", "item"]).any()

    def test_attributes_repeated(self, wide):
        """Non-question columns are copied onto every derived row."""
        long_df = reshape_to_long(wide)
        rows = long_df[long_df["id"] == 3]
        assert rows["age"].tolist() == [30, 30, 30]
        assert rows["Eng_start"].tolist() == [10, 10, 10]
        assert (rows["primelangs"] == "Spanish").all()

    def test_custom_names(self, wide):
        """Key and value column names are configurable."""
        long_df = reshape_to_long(wide, key_name="question_key", value_name="answer")
        assert {"question_key", "answer"} <= set(long_df.columns)
        assert "q1" not in long_df.columns

    def test_no_question_columns(self, wide):
        """Zero selected columns give zero rows."""
        data = wide.drop(columns=["q1", "q2", "q3_1"])
        long_df = reshape_to_long(data)
        assert len(long_df) == 0
        assert list(long_df.columns) == ["id", "primelangs", "age", "Eng_start", "item", "correct"]

    def test_input_not_modified(self, wide):
        before = wide.copy()
        reshape_to_long(wide)
        pd.testing.assert_frame_equal(wide, before)


class TestPivotToWide:
    """Tests for the long-to-wide reverse reshape."""

    def test_round_trip(self, wide):
        """Reshaping back reproduces the filtered wide table."""
        filtered = filter_languages(wide, ALLOWED)
        back = pivot_to_wide(reshape_to_long(filtered))

        expected = filtered.sort_values("id").reset_index(drop=True)
        expected["primelangs"] = expected["primelangs"].astype(str)
        back["primelangs"] = back["primelangs"].astype(str)

        assert list(back.columns) == list(expected.columns)
        pd.testing.assert_frame_equal(
            back, expected, check_dtype=False, check_column_type=False
        )


class TestJoinQuestionMetadata:
    """Tests for the metadata join."""

    def test_all_matched(self, wide, metadata):
        """Every observation finds its question."""
        long_df = reshape_to_long(wide)
        joined, report = join_question_metadata(long_df, metadata)

        assert len(joined) == len(long_df)
        assert report.dropped_rows == 0
        assert report.unmatched_keys == []
        assert (joined["item"] == joined["question"]).all()
        assert {"construct", "description"} <= set(joined.columns)

    def test_unmatched_rows_dropped_and_reported(self, wide, metadata, caplog):
        """Keys without metadata are dropped, counted and logged."""
        long_df = reshape_to_long(wide)
        partial = metadata[metadata["question"] != "q3_1"]

        with caplog.at_level(logging.WARNING, logger="l2survey.data.preprocessing"):
            joined, report = join_question_metadata(long_df, partial)

        assert len(joined) <= len(long_df)
        assert report.matched_rows == len(joined) == 10
        assert report.dropped_rows == 5
        assert report.unmatched_keys == ["q3_1"]
        assert "q3_1" not in set(joined["item"])
        assert "Join dropped" in caplog.text

    def test_shared_column_suffixed(self, wide):
        """A non-key column on both sides is kept twice with distinct suffixes."""
        long_df = reshape_to_long(wide, value_name="answer")
        answer_key = pd.DataFrame({
            "question": ["q1", "q2", "q3_1"],
            "answer": ["grammatical", "ungrammatical", "grammatical"],
        })

        joined, _ = join_question_metadata(long_df, answer_key)
        assert "answer" not in joined.columns
        assert {"answer_response", "answer_key"} <= set(joined.columns)
        assert set(joined["answer_response"]) <= {0, 1}
        assert joined_column_name("answer", answer_key) == "answer_response"
        assert "answer_response" in joined.columns

    def test_explicit_key_mapping(self, wide):
        """Left and right key names are independent."""
        long_df = reshape_to_long(wide, key_name="qkey")
        meta = pd.DataFrame({"code": ["q1", "q2"], "construct": ["x", "y"]})

        joined, report = join_question_metadata(long_df, meta, left_on="qkey", right_on="code")
        assert (joined["qkey"] == joined["code"]).all()
        assert report.matched_rows == 10

    def test_duplicate_metadata_keys_rejected(self, wide):
        long_df = reshape_to_long(wide)
        meta = pd.DataFrame({"question": ["q1", "q1"], "construct": ["x", "y"]})

        with pytest.raises(pd.errors.MergeError):
            join_question_metadata(long_df, meta)


class TestJoinedColumnName:
    """Tests for the name a column carries after the join."""

    def test_unshared_column_unchanged(self, metadata):
        assert joined_column_name("correct", metadata) == "correct"

    def test_shared_column_gets_left_suffix(self, metadata):
        answer_key = metadata.assign(correct=["grammatical", "grammatical", "ungrammatical"])
        assert joined_column_name("correct", answer_key) == "correct_response"
        assert joined_column_name("correct", answer_key, suffixes=("_obs", "_meta")) == "correct_obs"

    def test_shared_join_key_unchanged(self):
        meta = pd.DataFrame({"item": ["q1"], "construct": ["x"]})
        assert joined_column_name("item", meta, left_on="item", right_on="item") == "item"

    def test_matches_merge_result(self, wide, metadata):
        """The predicted name is the column the join actually produces."""
        answer_key = metadata.assign(correct=["grammatical"] * 3)
        joined, _ = join_question_metadata(reshape_to_long(wide), answer_key)
        assert joined_column_name("correct", answer_key) in joined.columns
        assert "correct" not in joined.columns
