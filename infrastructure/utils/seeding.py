"""Random generator construction for reproducibility."""

import logging

import numpy as np

logger = logging.getLogger(__name__)


def make_rng(seed: int | None) -> np.random.Generator:
    """
    Create the run's random generator.

    The generator is passed explicitly to every resampling call; global
    random state (random.seed / np.random.seed) is never touched.

    Args:
        seed: Random seed value, or None for a fresh OS-seeded generator (non-reproducible)

    Returns:
        numpy Generator
    """
    if seed is None:
        logger.warning("No seed given: bootstrap intervals will differ between runs.")
    return np.random.default_rng(seed)
