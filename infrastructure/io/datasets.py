"""Dataset loading utilities."""

from pathlib import Path

import pandas as pd


def read_table(path: Path) -> pd.DataFrame:
    """
    Read tabular data file (CSV, Excel or Parquet) based on file extension.

    Supported formats:
    - CSV: .csv, .csv.gz
    - Excel: .xlsx, .xls
    - Parquet: .parquet

    Args:
        path: Path to data file (e.g., the exported sepsis3 cohort table)

    Returns:
        pandas DataFrame

    Raises:
        ValueError: If file format is not supported
        FileNotFoundError: If file does not exist
        Exception: If file cannot be read (pandas exceptions)
    """
    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {path}")

    suffixes = [s.lower() for s in path.suffixes]
    suffix = suffixes[-1] if suffixes else ""

    if suffix in [".xlsx", ".xls"]:
        return pd.read_excel(path)
    elif suffix == ".csv" or suffixes[-2:] == [".csv", ".gz"]:
        return pd.read_csv(path)
    elif suffix == ".parquet":
        return pd.read_parquet(path)
    else:
        raise ValueError(f"Unsupported file format: {suffix}. Supported formats: .csv, .csv.gz, .xlsx, .xls, .parquet")
