"""
Unit Tests - Report Pipeline and Entry Points
"""
from pathlib import Path

import pytest
import polars as pl

from retail_eda.config.settings import ExplorationSettings, Settings
from retail_eda.ingestion.loader import load_snapshot, write_snapshot
from retail_eda.main import build_parser, main
from retail_eda.pipeline import EDAReport
from retail_eda.quality.validators import DataValidationError, ValidationStatus
from retail_eda.transformation.classifiers import ColumnType


@pytest.fixture
def raw_snapshot(tmp_path, generated_transactions_df) -> Path:
    return write_snapshot(generated_transactions_df, tmp_path / "raw" / "online_retail.parquet")


class TestSettings:
    """Tests for configuration"""

    def test_defaults(self):
        settings = Settings()

        assert settings.exploration.dedup_key == ["excel_sheet", "date", "invoice", "stock_code"]
        assert settings.exploration.cancellation_prefix == "C"
        assert settings.data.cleaned_output.name == "online_retail_clean.parquet"

    def test_sections(self):
        assert set(Settings.model_fields) == {"app_name", "app_env", "data", "exploration", "monitoring"}

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("EDA_MAX_CATEGORIES", "12")
        monkeypatch.setenv("DATA_CURATED_PATH", "/tmp/curated")

        settings = Settings()

        assert settings.exploration.max_categories == 12
        assert settings.data.timeseries_output == Path("/tmp/curated") / "spend_timeseries.parquet"

    def test_positive_thresholds(self):
        with pytest.raises(ValueError):
            ExplorationSettings(histogram_bins=0)

    def test_invalid_environment(self):
        with pytest.raises(ValueError):
            Settings(APP_ENV="moon")


class TestEDAReport:
    """Tests for the end-to-end report"""

    def test_run(self, test_settings, raw_snapshot, generated_transactions_df):
        result = EDAReport(test_settings).run(raw_snapshot)

        assert result.input_rows == generated_transactions_df.height
        assert 0 < result.output_rows <= result.input_rows
        assert result.rows_dropped == result.cleaning.duplicates_removed
        assert result.validation.status in (ValidationStatus.PASSED, ValidationStatus.PARTIAL)

        bucketed = [c for cols in result.classification.buckets.values() for c in cols]
        assert sorted(bucketed) == sorted(load_snapshot(result.output_paths["cleaned"]).columns)

        assert result.charts
        figures = Path(test_settings.data.figures_path)
        assert all(chart.path.parent == figures and chart.path.exists() for chart in result.charts)
        assert {"missing_by_column", "missing_patterns", "spend_timeseries"} <= {c.name for c in result.charts}

    def test_outputs_written(self, test_settings, raw_snapshot):
        result = EDAReport(test_settings, render_charts=False).run(raw_snapshot)

        cleaned = load_snapshot(result.output_paths["cleaned"])
        timeseries = load_snapshot(result.output_paths["timeseries"])

        assert cleaned.height == result.output_rows
        assert cleaned.select(test_settings.exploration.dedup_key).n_unique() == cleaned.height
        assert timeseries.columns == ["series", "period", "date", "total_spend"]
        assert set(timeseries["series"].unique().to_list()) == {"daily", "weekly", "monthly"}
        assert result.charts == []

    def test_aggregates(self, test_settings, raw_snapshot):
        result = EDAReport(test_settings, render_charts=False).run(raw_snapshot)
        cleaned = load_snapshot(result.output_paths["cleaned"])
        aggregates = result.aggregates

        assert aggregates.invoices["invoice_amount"].sum() == pytest.approx(cleaned["amount"].sum())
        assert aggregates.customer_spend["count"] == aggregates.customers.height
        assert aggregates.hill is not None

    def test_plot_classification_excludes_identifiers(self, test_settings, raw_snapshot):
        result = EDAReport(test_settings, render_charts=False).run(raw_snapshot)

        cleaned = load_snapshot(result.output_paths["cleaned"])
        excluded = set(result.classification.types) - set(result.plot_classification.types)

        for column in result.plot_classification.columns(ColumnType.DISCRETE):
            assert cleaned[column].n_unique() <= test_settings.exploration.missing_level_threshold
        # excluded columns stay in the cleaned dataset
        assert excluded <= set(cleaned.columns)

    def test_missing_required_column_aborts(self, test_settings, tmp_path, generated_transactions_df):
        path = write_snapshot(generated_transactions_df.drop("Price"), tmp_path / "broken.parquet")

        with pytest.raises(DataValidationError):
            EDAReport(test_settings, render_charts=False).run(path)

        assert not test_settings.data.cleaned_output.exists()

    def test_spend_charts_and_summary(self, test_settings, raw_snapshot):
        report = EDAReport(test_settings)
        cleaned = report.clean(report.load(raw_snapshot)).df
        plot_classification = report.cleaner.plot_columns(cleaned, report.classify(cleaned))

        charts = report.visualize_spend(report.aggregate(cleaned))
        stats = report.summarize(cleaned, plot_classification)

        assert [c.name for c in charts] == ["spend_timeseries", "distribution_customer_amount"]
        assert all(c.path.exists() for c in charts)
        assert stats["statistic"][0] == "count"
        assert set(stats.columns[1:]) == set(plot_classification.columns(ColumnType.CONTINUOUS))

    def test_spend_charts_skipped_without_renderer(self, test_settings, raw_snapshot):
        report = EDAReport(test_settings, render_charts=False)
        cleaned = report.clean(report.load(raw_snapshot)).df

        assert report.visualize_spend(report.aggregate(cleaned)) == []

    def test_missing_input(self, test_settings, tmp_path):
        with pytest.raises(FileNotFoundError):
            EDAReport(test_settings, render_charts=False).run(tmp_path / "absent.parquet")


class TestCommandLine:
    """Tests for the retail-eda command"""

    def test_parser(self):
        args = build_parser().parse_args(["--input", "raw.parquet", "--no-charts"])

        assert args.input == "raw.parquet"
        assert args.no_charts is True
        assert args.output_dir is None

    def test_main(self, tmp_path, raw_snapshot):
        output_dir = tmp_path / "out"

        exit_code = main([
            "--input", str(raw_snapshot),
            "--output-dir", str(output_dir),
            "--no-charts",
            "--log-level", "WARNING",
        ])

        assert exit_code == 0
        assert (output_dir / "online_retail_clean.parquet").exists()
        timeseries = pl.read_parquet(output_dir / "spend_timeseries.parquet")
        assert timeseries.height > 0
