"""
Data Validation Module

Rule-based checks run on the normalized transaction lines before any
cleaning decisions are made.

Features:
- Required column checks
- Null checks
- Range checks
- Composite key uniqueness
- Custom checks
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import polars as pl
import structlog

from retail_eda.transformation.classifiers import count_missing

logger = structlog.get_logger(__name__)

REQUIRED_COLUMNS = [
    "invoice",
    "stock_code",
    "quantity",
    "invoice_date",
    "price",
    "excel_sheet",
]


class ValidationSeverity(str, Enum):
    """Severity levels for validation failures"""
    ERROR = "error"  # aborts the report
    WARNING = "warning"  # logged, report continues
    INFO = "info"


class ValidationStatus(str, Enum):
    """Overall validation status"""
    PASSED = "passed"
    FAILED = "failed"
    PARTIAL = "partial"


class DataValidationError(Exception):
    """Raised when an error-severity check fails"""

    def __init__(self, result: "ValidationResult"):
        self.result = result
        failed = [c.name for c in result.checks if not c.passed and c.severity == ValidationSeverity.ERROR]
        super().__init__(f"Data validation failed: {', '.join(failed)}")


@dataclass
class ValidationCheck:
    """Single validation check result"""
    name: str
    passed: bool
    severity: ValidationSeverity
    message: str
    details: Optional[Dict[str, Any]] = None
    failed_rows: int = 0
    total_rows: int = 0


@dataclass
class ValidationResult:
    """Complete validation suite result"""
    status: ValidationStatus
    total_checks: int
    passed_checks: int
    failed_checks: int
    warning_count: int
    checks: List[ValidationCheck] = field(default_factory=list)
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: Optional[datetime] = None

    @property
    def success_rate(self) -> float:
        """Percentage of passed checks"""
        if self.total_checks == 0:
            return 100.0
        return (self.passed_checks / self.total_checks) * 100


def _column_not_found(name: str, column: str, severity: ValidationSeverity) -> ValidationCheck:
    return ValidationCheck(
        name=name,
        passed=False,
        severity=severity,
        message=f"Column '{column}' not found",
    )


class DataValidator:
    """
    Data validator with a chainable check suite.

    Example:
        validator = DataValidator()
        validator.add_required_columns_check(["invoice", "price"])
        validator.add_not_null_check("invoice")
        result = validator.validate(df)
    """

    def __init__(self, strict_mode: bool = False):
        self.strict_mode = strict_mode  # warnings fail the suite too
        self._checks: List[Callable[[pl.DataFrame], ValidationCheck]] = []

    def add_required_columns_check(
        self,
        columns: List[str],
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check that all listed columns exist"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            missing = [c for c in columns if c not in df.columns]
            return ValidationCheck(
                name="required_columns",
                passed=not missing,
                severity=severity,
                message=f"Missing columns: {missing}" if missing else "All required columns present",
                details={"missing": missing},
                total_rows=df.height,
            )

        self._checks.append(check)
        return self

    def add_not_null_check(
        self,
        column: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for missing values in column"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            name = f"not_null_{column}"
            if column not in df.columns:
                return _column_not_found(name, column, severity)

            null_count = count_missing(df.get_column(column))
            total = df.height
            passed = null_count == 0

            return ValidationCheck(
                name=name,
                passed=passed,
                severity=severity,
                message=f"Column '{column}' has {null_count} missing values" if not passed else f"Column '{column}' has no missing values",
                details={"null_count": null_count, "null_percentage": (null_count / total) * 100 if total > 0 else 0},
                failed_rows=null_count,
                total_rows=total,
            )

        self._checks.append(check)
        return self

    def add_range_check(
        self,
        column: str,
        min_value: Optional[float] = None,
        max_value: Optional[float] = None,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for values within specified range"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            name = f"range_{column}"
            if column not in df.columns:
                return _column_not_found(name, column, severity)

            conditions = []
            if min_value is not None:
                conditions.append(pl.col(column) < min_value)
            if max_value is not None:
                conditions.append(pl.col(column) > max_value)

            if not conditions:
                return ValidationCheck(
                    name=name,
                    passed=True,
                    severity=severity,
                    message="No range specified",
                )

            out_of_range = df.filter(pl.any_horizontal(conditions)).height
            total = df.height
            passed = out_of_range == 0

            return ValidationCheck(
                name=name,
                passed=passed,
                severity=severity,
                message=f"Column '{column}' has {out_of_range} values outside [{min_value}, {max_value}]" if not passed else f"Column '{column}' values within range",
                details={"min_value": min_value, "max_value": max_value, "out_of_range": out_of_range},
                failed_rows=out_of_range,
                total_rows=total,
            )

        self._checks.append(check)
        return self

    def add_unique_key_check(
        self,
        columns: List[str],
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check that a composite key identifies one row"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            name = f"unique_{'_'.join(columns)}"
            missing = [c for c in columns if c not in df.columns]
            if missing:
                return _column_not_found(name, missing[0], severity)

            total = df.height
            duplicate_count = total - df.select(columns).n_unique() if total else 0
            passed = duplicate_count == 0

            return ValidationCheck(
                name=name,
                passed=passed,
                severity=severity,
                message=f"Key {columns} has {duplicate_count} duplicate rows" if not passed else f"Key {columns} is unique",
                details={"duplicate_count": duplicate_count},
                failed_rows=duplicate_count,
                total_rows=total,
            )

        self._checks.append(check)
        return self

    def add_custom_check(
        self,
        name: str,
        check_func: Callable[[pl.DataFrame], bool],
        message_on_fail: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add custom validation check"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            try:
                passed = bool(check_func(df))
            except Exception as e:
                return ValidationCheck(
                    name=name,
                    passed=False,
                    severity=severity,
                    message=f"Check failed with error: {e}",
                )
            return ValidationCheck(
                name=name,
                passed=passed,
                severity=severity,
                message="Check passed" if passed else message_on_fail,
                total_rows=df.height,
            )

        self._checks.append(check)
        return self

    def validate(self, df: pl.DataFrame, raise_on_error: bool = False) -> ValidationResult:
        """
        Run all validation checks on DataFrame.

        Args:
            df: DataFrame to validate
            raise_on_error: Raise DataValidationError when the suite fails

        Returns:
            ValidationResult with all check results
        """
        started_at = datetime.now(timezone.utc)
        results = []

        logger.info(f"Running {len(self._checks)} validation checks on {df.height} rows")

        for check_func in self._checks:
            result = check_func(df)
            results.append(result)

            if not result.passed:
                logger.warning(
                    f"Validation failed: {result.name}",
                    message=result.message,
                    severity=result.severity.value,
                )

        passed_checks = sum(1 for r in results if r.passed)
        failed_checks = sum(1 for r in results if not r.passed and r.severity == ValidationSeverity.ERROR)
        warning_count = sum(1 for r in results if not r.passed and r.severity == ValidationSeverity.WARNING)

        if failed_checks > 0:
            status = ValidationStatus.FAILED
        elif warning_count > 0 and self.strict_mode:
            status = ValidationStatus.FAILED
        elif warning_count > 0:
            status = ValidationStatus.PARTIAL
        else:
            status = ValidationStatus.PASSED

        validation_result = ValidationResult(
            status=status,
            total_checks=len(results),
            passed_checks=passed_checks,
            failed_checks=failed_checks,
            warning_count=warning_count,
            checks=results,
            started_at=started_at,
            completed_at=datetime.now(timezone.utc),
        )

        logger.info(
            f"Validation complete: {status.value}",
            passed=passed_checks,
            failed=failed_checks,
            warnings=warning_count,
        )

        if raise_on_error and status == ValidationStatus.FAILED:
            raise DataValidationError(validation_result)

        return validation_result


def create_transactions_validator() -> DataValidator:
    """Checks for normalized transaction lines"""
    return (
        DataValidator()
        .add_required_columns_check(REQUIRED_COLUMNS)
        .add_not_null_check("invoice")
        .add_not_null_check("stock_code")
        .add_not_null_check("invoice_date")
        .add_not_null_check("customer_id", severity=ValidationSeverity.WARNING)
        .add_range_check("price", min_value=0, severity=ValidationSeverity.WARNING)
    )


def create_cleaned_validator(dedup_key: List[str]) -> DataValidator:
    """Checks that must hold after cleaning"""
    return (
        DataValidator()
        .add_unique_key_check(dedup_key)
        .add_range_check("month_day_proportion", min_value=0, max_value=1)
    )
