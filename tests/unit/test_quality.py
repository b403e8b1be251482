"""
Unit Tests - Data Quality
"""
import numpy as np
import pytest
import polars as pl

from retail_eda.quality.profiler import (
    PATTERN_COUNT,
    PATTERN_PROPORTION,
    MissingProfiler,
    MissingSeverity,
    combination_matrix,
    continuous_summary,
    flag_missing_columns,
    missing_patterns,
    missing_summary,
)
from retail_eda.quality.validators import (
    DataValidationError,
    DataValidator,
    ValidationSeverity,
    ValidationStatus,
    create_cleaned_validator,
    create_transactions_validator,
)
from retail_eda.transformation.cleaners import DataCleaner


@pytest.fixture
def sparse_df() -> pl.DataFrame:
    return pl.DataFrame({
        "a": [1.0, None, 3.0, float("nan")],
        "b": ["x", None, "z", "w"],
        "c": [1, 2, 3, 4],
    })


class TestMissingSummary:
    """Tests for per-column missing counts"""

    def test_counts_and_proportions(self, sparse_df):
        summary = missing_summary(sparse_df)

        assert summary["column"].to_list() == ["a", "b", "c"]
        assert summary["missing_count"].to_list() == [2, 1, 0]
        assert summary["missing_proportion"].to_list() == pytest.approx([0.5, 0.25, 0.0])

    def test_complete_column_is_exactly_zero(self, raw_transactions_df):
        summary = missing_summary(raw_transactions_df)
        row = summary.filter(pl.col("column") == "Invoice").row(0, named=True)

        assert row["missing_count"] == 0
        assert row["missing_proportion"] == 0.0

    def test_proportions_bounded(self, generated_transactions_df):
        proportions = missing_summary(generated_transactions_df)["missing_proportion"]

        assert proportions.min() >= 0.0
        assert proportions.max() <= 1.0

    def test_empty_frame(self):
        summary = missing_summary(pl.DataFrame({"a": []}, schema={"a": pl.Int64}))

        assert summary["missing_count"].to_list() == [0]
        assert summary["missing_proportion"].to_list() == [0.0]


class TestMissingPatterns:
    """Tests for joint missingness signatures"""

    def test_patterns_sorted_by_frequency(self, sparse_df):
        patterns = missing_patterns(sparse_df)

        assert patterns.columns == ["a", "b", "c", PATTERN_COUNT, PATTERN_PROPORTION]
        assert patterns.height == 3

        top = patterns.row(0, named=True)
        assert (top["a"], top["b"], top["c"]) == (0, 0, 0)
        assert top[PATTERN_COUNT] == 2
        assert top[PATTERN_PROPORTION] == pytest.approx(0.5)

        # ties keep first-seen order
        assert patterns.select(["a", "b"]).rows()[1:] == [(1, 1), (1, 0)]

    def test_counts_cover_all_rows(self, generated_transactions_df):
        patterns = missing_patterns(generated_transactions_df)

        assert patterns[PATTERN_COUNT].sum() == generated_transactions_df.height
        assert patterns[PATTERN_PROPORTION].sum() == pytest.approx(1.0)

    def test_empty_frame(self):
        patterns = missing_patterns(pl.DataFrame(schema={"a": pl.Int64}))

        assert patterns.is_empty()
        assert patterns.columns == ["a", PATTERN_COUNT, PATTERN_PROPORTION]

    def test_combination_matrix(self, sparse_df):
        matrix, columns, labels = combination_matrix(missing_patterns(sparse_df))

        assert matrix.shape == (3, 3)
        assert columns == ["a", "b", "c"]
        assert labels[0] == "2 (50.0%)"
        np.testing.assert_array_equal(matrix[:, 2], [0, 0, 0])


class TestMissingFlags:
    """Tests for severity flagging"""

    def test_severities(self):
        summary = pl.DataFrame({
            "column": ["ok", "medium", "high", "critical"],
            "missing_count": [1, 10, 30, 60],
            "missing_proportion": [0.01, 0.1, 0.3, 0.6],
        })

        flags = flag_missing_columns(summary, threshold=0.05)

        assert [f.column for f in flags] == ["medium", "high", "critical"]
        assert [f.severity for f in flags] == [
            MissingSeverity.MEDIUM,
            MissingSeverity.HIGH,
            MissingSeverity.CRITICAL,
        ]


class TestMissingProfiler:
    """Tests for MissingProfiler"""

    def test_profile(self, sparse_df):
        profile = MissingProfiler(flag_threshold=0.1).profile(sparse_df)

        assert profile.total_rows == 4
        assert profile.complete_rows == 2
        assert profile.columns_with_missing == ["a", "b"]
        assert [f.column for f in profile.flags] == ["a", "b"]

    def test_continuous_summary(self, sparse_df):
        stats = continuous_summary(sparse_df, ["c"])

        assert "statistic" in stats.columns
        mean = stats.filter(pl.col("statistic") == "mean")["c"][0]
        assert mean == pytest.approx(2.5)

    def test_continuous_summary_no_columns(self):
        assert continuous_summary(pl.DataFrame({"s": ["a"]})).is_empty()


class TestDataValidator:
    """Tests for DataValidator"""

    def test_not_null_check_pass(self):
        df = pl.DataFrame({"invoice": ["1", "2", "3"]})

        result = DataValidator().add_not_null_check("invoice").validate(df)

        assert result.status == ValidationStatus.PASSED
        assert result.passed_checks == 1

    def test_not_null_check_fail(self):
        df = pl.DataFrame({"invoice": ["1", None, "3"]})

        result = DataValidator().add_not_null_check("invoice").validate(df)

        assert result.status == ValidationStatus.FAILED
        assert result.checks[0].failed_rows == 1

    def test_not_null_check_missing_column(self):
        result = DataValidator().add_not_null_check("invoice").validate(pl.DataFrame({"x": [1]}))

        assert result.status == ValidationStatus.FAILED
        assert "not found" in result.checks[0].message

    def test_range_check(self):
        df = pl.DataFrame({"price": [0.5, 2.0, -1.0]})

        result = DataValidator().add_range_check("price", min_value=0).validate(df)

        assert not result.checks[0].passed
        assert result.checks[0].failed_rows == 1

    def test_unique_key_check(self):
        df = pl.DataFrame({"a": [1, 1, 2], "b": ["x", "x", "x"]})

        result = DataValidator().add_unique_key_check(["a", "b"]).validate(df)

        assert result.checks[0].details["duplicate_count"] == 1

    def test_custom_check(self):
        df = pl.DataFrame({"quantity": [1, 2]})

        result = (
            DataValidator()
            .add_custom_check("has_rows", lambda d: d.height > 0, "Frame is empty")
            .add_custom_check("broken", lambda d: d["missing"].sum() > 0, "never")
            .validate(df)
        )

        assert result.checks[0].passed
        assert not result.checks[1].passed
        assert "error" in result.checks[1].message

    def test_warning_gives_partial_status(self):
        df = pl.DataFrame({"customer_id": [1.0, None]})

        result = (
            DataValidator()
            .add_not_null_check("customer_id", severity=ValidationSeverity.WARNING)
            .validate(df)
        )

        assert result.status == ValidationStatus.PARTIAL
        assert result.warning_count == 1

    def test_strict_mode_fails_on_warning(self):
        df = pl.DataFrame({"customer_id": [1.0, None]})

        result = (
            DataValidator(strict_mode=True)
            .add_not_null_check("customer_id", severity=ValidationSeverity.WARNING)
            .validate(df)
        )

        assert result.status == ValidationStatus.FAILED

    def test_raise_on_error(self):
        df = pl.DataFrame({"invoice": [None]}, schema={"invoice": pl.String})

        with pytest.raises(DataValidationError) as exc_info:
            DataValidator().add_not_null_check("invoice").validate(df, raise_on_error=True)

        assert exc_info.value.result.failed_checks == 1
        assert "not_null_invoice" in str(exc_info.value)

    def test_success_rate(self):
        df = pl.DataFrame({"a": [1], "b": [None]})

        result = DataValidator().add_not_null_check("a").add_not_null_check("b").validate(df)

        assert result.success_rate == pytest.approx(50.0)


class TestTransactionValidators:
    """Tests for the prebuilt check suites"""

    def test_transactions_validator(self, raw_transactions_df):
        df = DataCleaner().normalize_column_names(raw_transactions_df)

        result = create_transactions_validator().validate(df)

        # one line has no customer id
        assert result.status == ValidationStatus.PARTIAL
        assert result.failed_checks == 0
        assert result.warning_count == 1

    def test_transactions_validator_missing_column(self, raw_transactions_df):
        df = DataCleaner().normalize_column_names(raw_transactions_df).drop("price")

        result = create_transactions_validator().validate(df)

        assert result.status == ValidationStatus.FAILED
        assert result.checks[0].details["missing"] == ["price"]

    def test_cleaned_validator(self, raw_transactions_df):
        cleaner = DataCleaner()
        normalized = cleaner.normalize_column_names(raw_transactions_df)
        enriched = cleaner.enricher.add_calendar_features(normalized)
        cleaned = cleaner.clean(raw_transactions_df).df
        validator = create_cleaned_validator(cleaner.dedup_key)

        assert validator.validate(cleaned).status == ValidationStatus.PASSED
        assert validator.validate(enriched).status == ValidationStatus.FAILED
