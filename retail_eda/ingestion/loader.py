"""
Snapshot Loader

Reads and writes the tabular snapshots the report works from.
Supports:
- Parquet, CSV, Arrow IPC (feather) and pandas pickle snapshots
- Format inference from the file suffix
- Row order preserved exactly as stored
"""

from enum import Enum
from pathlib import Path
from typing import Dict, Optional, Union

import pandas as pd
import polars as pl
import structlog

logger = structlog.get_logger(__name__)


class SnapshotFormat(str, Enum):
    """Supported snapshot formats"""
    PARQUET = "parquet"
    CSV = "csv"
    IPC = "ipc"
    PICKLE = "pickle"


_SUFFIXES: Dict[str, SnapshotFormat] = {
    ".parquet": SnapshotFormat.PARQUET,
    ".pq": SnapshotFormat.PARQUET,
    ".csv": SnapshotFormat.CSV,
    ".feather": SnapshotFormat.IPC,
    ".arrow": SnapshotFormat.IPC,
    ".ipc": SnapshotFormat.IPC,
    ".pkl": SnapshotFormat.PICKLE,
    ".pickle": SnapshotFormat.PICKLE,
}


def infer_format(path: Union[str, Path]) -> SnapshotFormat:
    """Infer the snapshot format from the file suffix"""
    suffix = Path(path).suffix.lower()
    file_format = _SUFFIXES.get(suffix)
    if file_format is None:
        raise ValueError(f"Unsupported snapshot format: {suffix or path}")
    return file_format


def _read_pickle(path: Path) -> pl.DataFrame:
    """Read a pandas pickle; NaN becomes null"""
    pdf = pd.read_pickle(path)
    if not isinstance(pdf, pd.DataFrame):
        raise ValueError(f"Pickle at {path} does not hold a DataFrame")
    # object columns mixing ints and strings (invoice and stock codes) go to text
    for col in pdf.select_dtypes(include="object").columns:
        if pdf[col].dropna().map(type).nunique() > 1:
            pdf[col] = pdf[col].where(pdf[col].isna(), pdf[col].astype(str))
    return pl.from_pandas(pdf, nan_to_null=True)


def load_snapshot(
    path: Union[str, Path],
    file_format: Optional[SnapshotFormat] = None,
) -> pl.DataFrame:
    """
    Load a tabular snapshot into memory.

    Args:
        path: Snapshot file
        file_format: Explicit format, inferred from the suffix when omitted

    Returns:
        DataFrame with rows in file order
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Snapshot not found: {path}")

    file_format = file_format or infer_format(path)

    readers = {
        SnapshotFormat.PARQUET: pl.read_parquet,
        SnapshotFormat.CSV: lambda p: pl.read_csv(p, try_parse_dates=True),
        SnapshotFormat.IPC: pl.read_ipc,
        SnapshotFormat.PICKLE: _read_pickle,
    }
    df = readers[file_format](path)

    logger.info(
        "Snapshot loaded",
        path=str(path),
        format=file_format.value,
        rows=df.height,
        columns=df.width,
    )
    return df


def write_snapshot(
    df: pl.DataFrame,
    path: Union[str, Path],
    file_format: Optional[SnapshotFormat] = None,
) -> Path:
    """Write a snapshot, creating parent directories as needed"""
    path = Path(path)
    file_format = file_format or infer_format(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if file_format == SnapshotFormat.PARQUET:
        df.write_parquet(path)
    elif file_format == SnapshotFormat.CSV:
        df.write_csv(path)
    elif file_format == SnapshotFormat.IPC:
        df.write_ipc(path)
    else:
        df.to_pandas().to_pickle(path)

    logger.info(f"Written {df.height} rows to {path}")
    return path
