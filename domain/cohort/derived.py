"""
Derived columns of the Sepsis-3 cohort table.

The upstream extraction query joins the cohort with demographics, comorbidity
flags and severity scores. These helpers recompute its derived fields from the
raw columns, so a cohort exported without them can still be evaluated.
All functions are pure: they return a new DataFrame.
"""

import logging

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

WHITE_ETHNICITIES = frozenset(
    {
        "WHITE",
        "WHITE - RUSSIAN",
        "WHITE - OTHER EUROPEAN",
        "WHITE - BRAZILIAN",
        "WHITE - EASTERN EUROPEAN",
    }
)
BLACK_ETHNICITIES = frozenset(
    {
        "BLACK/AFRICAN AMERICAN",
        "BLACK/CAPE VERDEAN",
        "BLACK/HAITIAN",
        "BLACK/AFRICAN",
        "CARIBBEAN ISLAND",
    }
)
HISPANIC_ETHNICITIES = frozenset(
    {
        "HISPANIC OR LATINO",
        "HISPANIC/LATINO - PUERTO RICAN",
        "HISPANIC/LATINO - DOMINICAN",
        "HISPANIC/LATINO - GUATEMALAN",
        "HISPANIC/LATINO - CUBAN",
        "HISPANIC/LATINO - SALVADORAN",
        "HISPANIC/LATINO - CENTRAL AMERICAN (OTHER)",
        "HISPANIC/LATINO - MEXICAN",
        "HISPANIC/LATINO - COLOMBIAN",
        "HISPANIC/LATINO - HONDURAN",
    }
)

# van Walraven et al. (2009) in-hospital mortality weights for the Elixhauser comorbidities
VAN_WALRAVEN_WEIGHTS: dict[str, int] = {
    "congestive_heart_failure": 4,
    "cardiac_arrhythmias": 4,
    "valvular_disease": -3,
    "pulmonary_circulation": 0,
    "peripheral_vascular": 0,
    "hypertension": -1,
    "paralysis": 0,
    "other_neurological": 7,
    "chronic_pulmonary": 0,
    "diabetes_uncomplicated": -1,
    "diabetes_complicated": -4,
    "hypothyroidism": 0,
    "renal_failure": 3,
    "liver_disease": 4,
    "peptic_ulcer": -9,
    "aids": 0,
    "lymphoma": 7,
    "metastatic_cancer": 9,
    "solid_tumor": 0,
    "rheumatoid_arthritis": 0,
    "coagulopathy": 3,
    "obesity": -5,
    "weight_loss": 4,
    "fluid_electrolyte": 6,
    "blood_loss_anemia": 0,
    "deficiency_anemias": -4,
    "alcohol_abuse": 0,
    "drug_abuse": -6,
    "psychoses": -5,
    "depression": -8,
}

SOFA_SEPSIS_THRESHOLD = 2


def _has(df: pd.DataFrame, *columns: str) -> bool:
    return all(c in df.columns for c in columns)


def _flag(mask: pd.Series) -> pd.Series:
    return mask.fillna(False).astype(int)


def elixhauser_van_walraven(df: pd.DataFrame) -> pd.Series:
    """
    Weighted Elixhauser score (van Walraven) from the 30 comorbidity flags.

    Raises:
        KeyError: If any comorbidity flag is missing
    """
    missing = [c for c in VAN_WALRAVEN_WEIGHTS if c not in df.columns]
    if missing:
        raise KeyError(f"Missing Elixhauser comorbidity columns: {missing}")
    flags = df[list(VAN_WALRAVEN_WEIGHTS)].apply(pd.to_numeric, errors="coerce")
    weights = pd.Series(VAN_WALRAVEN_WEIGHTS, dtype=float)
    # A stay with any missing flag has no score, as with SQL null arithmetic
    return flags.mul(weights, axis=1).sum(axis=1, min_count=len(weights))


def sepsis3_flag(df: pd.DataFrame, suspicion_col: str, sofa_col: str = "sofa") -> pd.Series:
    """Sepsis-3: suspected infection and an acute SOFA of at least 2."""
    suspected = df[suspicion_col].notna()
    organ_dysfunction = pd.to_numeric(df[sofa_col], errors="coerce") >= SOFA_SEPSIS_THRESHOLD
    return _flag(suspected & organ_dysfunction)


def add_derived_columns(df: pd.DataFrame, suspicion_col: str = "suspected_infection_time") -> pd.DataFrame:
    """
    Add the cohort's derived fields where their source columns are present.

    Adds is_male, race_white/black/hispanic/other, diabetes, bmi,
    elixhauser_hospital, lactate_missing and sepsis3. Existing columns of the
    same name are left untouched.

    Args:
        df: Cohort table, one row per ICU stay
        suspicion_col: Column that is non-null when infection was suspected

    Returns:
        A copy of df with the derived columns appended
    """
    out = df.copy()
    added: list[str] = []

    def _add(name: str, values: pd.Series) -> None:
        if name not in out.columns:
            out[name] = values
            added.append(name)

    if _has(out, "gender"):
        _add("is_male", _flag(out["gender"] == "M"))

    if _has(out, "ethnicity"):
        eth = out["ethnicity"].astype("string").str.strip().str.upper()
        _add("race_white", _flag(eth.isin(WHITE_ETHNICITIES)))
        _add("race_black", _flag(eth.isin(BLACK_ETHNICITIES)))
        _add("race_hispanic", _flag(eth.isin(HISPANIC_ETHNICITIES)))
        known = WHITE_ETHNICITIES | BLACK_ETHNICITIES | HISPANIC_ETHNICITIES
        _add("race_other", _flag(eth.notna() & ~eth.isin(known)))

    if _has(out, "diabetes_uncomplicated", "diabetes_complicated"):
        _add("diabetes", _flag((out["diabetes_uncomplicated"] == 1) | (out["diabetes_complicated"] == 1)))

    if _has(out, "height", "weight"):
        height_m = pd.to_numeric(out["height"], errors="coerce") / 100.0
        weight = pd.to_numeric(out["weight"], errors="coerce")
        _add("bmi", (weight / (height_m * height_m)).replace([np.inf, -np.inf], np.nan))

    if _has(out, *VAN_WALRAVEN_WEIGHTS):
        _add("elixhauser_hospital", elixhauser_van_walraven(out))

    if _has(out, "lactate_max"):
        _add("lactate_missing", out["lactate_max"].isna().astype(int))

    if _has(out, suspicion_col, "sofa"):
        _add("sepsis3", sepsis3_flag(out, suspicion_col))
    elif "sepsis3" not in out.columns:
        logger.warning(
            "Cannot derive sepsis3: columns '%s' and/or 'sofa' missing from cohort table.",
            suspicion_col,
        )

    logger.info("Derived cohort columns: %s", added or "none")
    return out
