"""Built-in sample CV used by the HTTP sample endpoint, the CLI and tests."""

import copy
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

from omegaconf import OmegaConf

SAMPLE_CV_PATH = Path(__file__).parent / "sample_cv.yaml"


@lru_cache(maxsize=1)
def _load_sample() -> Dict[str, Any]:
    return OmegaConf.to_container(OmegaConf.load(SAMPLE_CV_PATH), resolve=True)


def sample_cv() -> Dict[str, Any]:
    """
    Get the sample CV in wire format.

    Returns a fresh deep copy on every call so callers may mutate it freely.
    """
    return copy.deepcopy(_load_sample())
