"""
Shared fixtures for the ImageAlignment test suite.
"""

import sys
from pathlib import Path

import matplotlib
matplotlib.use("Agg")

import numpy as np
import pytest

project_root = Path(__file__).parent.parent  # Go up from tests/ to project root
sys.path.insert(0, str(project_root))

from ImageAlignment.algorithms import AlignBase
from ImageAlignment.core.interfaces import SingleStepResult


def make_smooth_image(size: int = 128, seed: int = 0, num_blobs: int = 14) -> np.ndarray:
    """Sum of random Gaussian blobs, float32 in roughly [0, 255]"""
    rng = np.random.default_rng(seed)
    ys, xs = np.mgrid[0:size, 0:size].astype(np.float64)

    img = np.zeros((size, size))
    for _ in range(num_blobs):
        cx, cy = rng.uniform(0, size, 2)
        sigma = rng.uniform(6.0, 14.0)
        amplitude = rng.uniform(0.3, 1.0) * rng.choice([-1.0, 1.0])
        img += amplitude * np.exp(-((xs - cx) ** 2 + (ys - cy) ** 2) / (2.0 * sigma ** 2))

    img -= img.min()
    img *= 255.0 / img.max()
    return img.astype(np.float32)


class ScriptedAligner(AlignBase):
    """
    Aligner whose steps come from a callable.

    ``script(aligner, warp, call_index_on_level)`` returns the
    SingleStepResult for each call. Every call and every applied step is
    recorded for inspection.
    """

    def __init__(self, script):
        super().__init__()
        self.script = script
        self.calls = []
        self.applied = []
        self.prepared_with = None
        self._calls_on_level = {}

    def prepare_impl(self, warp):
        self.prepared_with = warp.copy()

    def align_impl(self, warp):
        index = self._calls_on_level.get(self.level, 0)
        self._calls_on_level[self.level] = index + 1
        self.calls.append((self.level, warp.copy()))
        return self.script(self, warp, index)

    def apply_step(self, warp, step):
        self.applied.append(self.level)
        warp.update_additive(step.delta)


def constant_step(delta, sum_errors=1.0, num_constraints=10):
    """Script returning the same step on every call"""
    delta = np.asarray(delta, dtype=np.float64)

    def script(aligner, warp, index):
        return SingleStepResult(delta=delta.copy(), sum_errors=sum_errors,
                                num_constraints=num_constraints)
    return script


@pytest.fixture
def smooth_target():
    return make_smooth_image(128, seed=0)


@pytest.fixture
def small_template():
    return make_smooth_image(64, seed=1)
