"""
Prefect Workflow Orchestration - Exploratory Report

Runs the report stages as Prefect tasks so a run is visible (and
schedulable) in a Prefect server:
- Load and validate the raw snapshot
- Clean, classify and profile
- Aggregate spend and persist snapshots
- Render charts
"""

from typing import Optional

from prefect import flow, task, get_run_logger
from prefect.cache_policies import NO_CACHE

from retail_eda.config import get_settings
from retail_eda.pipeline import EDAReport

settings = get_settings()


# =============================================================================
# TASKS
# =============================================================================

@task(name="load_snapshot", description="Load and validate the raw snapshot", cache_policy=NO_CACHE)
def load_and_validate(report: EDAReport, input_path: Optional[str]):
    logger = get_run_logger()

    raw = report.load(input_path)
    validation = report.validate(raw)

    logger.info(
        f"Loaded {raw.height} rows; validation {validation.status.value}: "
        f"{validation.passed_checks}/{validation.total_checks} checks passed"
    )
    return raw


@task(name="clean_and_profile", description="Clean, classify and profile missing values", cache_policy=NO_CACHE)
def clean_and_profile(report: EDAReport, raw):
    logger = get_run_logger()

    cleaning = report.clean(raw)
    classification = report.classify(cleaning.df)
    plot_classification = report.cleaner.plot_columns(cleaning.df, classification)
    missing = report.profile(cleaning.df)
    continuous_stats = report.summarize(cleaning.df, plot_classification)

    logger.info(
        f"Cleaning: {cleaning.stats.total_rows} -> {cleaning.stats.rows_after_cleaning} rows, "
        f"{cleaning.stats.duplicates_removed} duplicates removed"
    )
    logger.info(f"Summary statistics:\n{continuous_stats}")
    return cleaning.df, plot_classification, missing


@task(name="aggregate_and_persist", description="Compute spend aggregates and write snapshots", cache_policy=NO_CACHE)
def aggregate_and_persist(report: EDAReport, cleaned) -> dict:
    logger = get_run_logger()

    aggregates = report.aggregate(cleaned)
    output_paths = report.persist(cleaned, aggregates.timeseries)

    logger.info(f"Snapshots written: {output_paths}")
    return {"aggregates": aggregates, "output_paths": output_paths}


@task(name="render_charts", description="Render descriptive charts", cache_policy=NO_CACHE)
def render_charts(report: EDAReport, cleaned, plot_classification, missing, aggregates) -> int:
    logger = get_run_logger()

    charts = report.visualize(cleaned, plot_classification, missing)
    charts.extend(report.visualize_spend(aggregates))

    logger.info(f"Rendered {len(charts)} charts")
    return len(charts)


# =============================================================================
# FLOWS
# =============================================================================

@flow(
    name="eda_report",
    description="Exploratory report over a retail transaction snapshot",
)
def eda_report_flow(
    input_path: Optional[str] = None,
    render: bool = True,
) -> dict:
    """
    Exploratory report flow.

    Steps:
    1. Load and validate
    2. Clean, classify, profile
    3. Aggregate and persist
    4. Render charts
    """
    logger = get_run_logger()
    logger.info(f"Starting exploratory report for {input_path or settings.data.raw_path}")

    report = EDAReport(settings, render_charts=render)

    raw = load_and_validate(report, input_path)
    cleaned, plot_classification, missing = clean_and_profile(report, raw)
    persisted = aggregate_and_persist(report, cleaned)
    chart_count = render_charts(report, cleaned, plot_classification, missing, persisted["aggregates"])

    return {
        "input_rows": raw.height,
        "output_rows": cleaned.height,
        "charts": chart_count,
        "output_paths": persisted["output_paths"],
    }


if __name__ == "__main__":
    eda_report_flow()
