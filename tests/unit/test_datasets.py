from pathlib import Path

import pandas as pd
import pytest

from infrastructure.io import ensure_exists, read_table


def test_read_csv_and_gzipped_csv(tmp_path: Path) -> None:
    df = pd.DataFrame({"icustay_id": [1, 2], "sofa": [3, 0]})
    df.to_csv(tmp_path / "cohort.csv", index=False)
    df.to_csv(tmp_path / "cohort.csv.gz", index=False)

    pd.testing.assert_frame_equal(read_table(tmp_path / "cohort.csv"), df)
    pd.testing.assert_frame_equal(read_table(tmp_path / "cohort.csv.gz"), df)


def test_read_table_rejects_unknown_format(tmp_path: Path) -> None:
    path = tmp_path / "cohort.txt"
    path.write_text("x", encoding="utf-8")

    with pytest.raises(ValueError, match="Unsupported file format"):
        read_table(path)


def test_missing_files(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        read_table(tmp_path / "absent.csv")
    with pytest.raises(FileNotFoundError, match="experiment.yaml"):
        ensure_exists(tmp_path / "absent.yaml", "experiment.yaml")
