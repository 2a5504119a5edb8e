"""Write a synthetic cohort table with the columns the evaluation expects, for dry runs."""

from __future__ import annotations

import argparse
from pathlib import Path

import numpy as np
import pandas as pd

from domain.cohort.derived import VAN_WALRAVEN_WEIGHTS

ETHNICITIES = [
    "WHITE",
    "BLACK/AFRICAN AMERICAN",
    "HISPANIC OR LATINO",
    "ASIAN",
    "UNKNOWN/NOT SPECIFIED",
]


def _sigmoid(x: np.ndarray) -> np.ndarray:
    return 1.0 / (1.0 + np.exp(-x))


def make_cohort(n: int, seed: int) -> pd.DataFrame:
    """
    One row per ICU stay. A latent severity drives the scores and the outcomes,
    so the criteria have realistic (imperfect) agreement with each other.
    """
    rng = np.random.default_rng(seed)
    severity = rng.normal(size=n)
    infected = rng.random(n) < _sigmoid(0.8 * severity - 0.3)

    df = pd.DataFrame(
        {
            "icustay_id": np.arange(200000, 200000 + n),
            "gender": rng.choice(["M", "F"], size=n),
            "ethnicity": rng.choice(ETHNICITIES, size=n, p=[0.7, 0.1, 0.05, 0.05, 0.1]),
            "age": np.clip(rng.normal(65, 15, size=n), 16, 91).round(1),
            "height": rng.normal(170, 10, size=n).round(0),
            "weight": rng.normal(80, 18, size=n).clip(35, 200).round(1),
            "sirs": np.clip(np.round(1.5 + 0.9 * severity + rng.normal(0, 0.7, n)), 0, 4).astype(int),
            "qsofa": np.clip(np.round(1.0 + 0.7 * severity + rng.normal(0, 0.6, n)), 0, 3).astype(int),
            "sofa": np.clip(np.round(3.0 + 2.5 * severity + rng.normal(0, 1.5, n)), 0, 24).astype(int),
            "lods": np.clip(np.round(3.0 + 2.0 * severity + rng.normal(0, 1.5, n)), 0, 22).astype(int),
            "lactate_max": np.exp(0.6 + 0.3 * severity + rng.normal(0, 0.4, n)).round(1),
        }
    )
    for name in VAN_WALRAVEN_WEIGHTS:
        df[name] = (rng.random(n) < 0.08).astype(int)

    admit = pd.Timestamp("2150-01-01") + pd.to_timedelta(rng.integers(0, 3650, n), unit="D")
    df["suspected_infection_time"] = admit.where(infected, pd.NaT)

    coded = infected & (rng.random(n) < _sigmoid(1.2 * severity))
    df["sepsis_angus"] = coded.astype(int)
    df["sepsis_martin"] = (coded & (rng.random(n) < 0.85)).astype(int)
    df["sepsis_explicit"] = (coded & (rng.random(n) < 0.35)).astype(int)
    df["hospital_expire_flag"] = (rng.random(n) < _sigmoid(1.3 * severity - 2.2)).astype(int)

    # Unscored stays, as produced by the extraction's left joins
    for col in ("sofa", "lods", "lactate_max"):
        df[col] = df[col].astype(float).mask(rng.random(n) < 0.02)
    return df


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--out", default="dataset/sepsis3-df.csv", help="Output CSV path")
    ap.add_argument("-n", "--n-stays", type=int, default=5000, help="Number of ICU stays")
    ap.add_argument("--seed", type=int, default=0, help="Random seed")
    args = ap.parse_args()

    out = Path(args.out)
    out.parent.mkdir(parents=True, exist_ok=True)
    make_cohort(args.n_stays, args.seed).to_csv(out, index=False)
    print(f"Wrote {args.n_stays} synthetic stays to: {out}")


if __name__ == "__main__":
    main()
