"""
End-to-end tests for the concrete aligners on synthetic images.

The template is cut out of a smooth target image with a known warp; the
aligners start from a perturbed warp and must recover the known one.
"""

import numpy as np
import pytest

from ImageAlignment.algorithms import (
    ForwardAdditive,
    InverseCompositional,
    create_aligner,
    available_aligners
)
from ImageAlignment.core.structures import ImagePyramid, TranslationWarp, AffineWarp
from ImageAlignment.utils import warp_image

from conftest import make_smooth_image


TEMPLATE_SIZE = (64, 64)
CORNERS = np.array([[0.0, 0.0], [64.0, 0.0], [64.0, 64.0], [0.0, 64.0]])


@pytest.fixture(scope="module")
def target():
    return make_smooth_image(128, seed=0)


def make_template(target, warp):
    return warp_image(target, warp, TEMPLATE_SIZE)


def corner_error(a, b):
    return float(np.max(np.linalg.norm(a.warp_points(CORNERS) - b.warp_points(CORNERS), axis=1)))


@pytest.mark.parametrize("aligner_cls", [ForwardAdditive, InverseCompositional])
def test_recovers_translation(target, aligner_cls):
    true_warp = TranslationWarp([30.4, 27.7])
    template = make_template(target, true_warp)

    aligner = aligner_cls()
    w = TranslationWarp([27.0, 25.0])
    aligner.prepare(template, target, w, 3)
    aligner.align(w, 60, 1e-4)

    np.testing.assert_allclose(w.params, true_warp.params, atol=0.1)
    assert aligner.iterations_performed > 0


@pytest.mark.parametrize("aligner_cls", [ForwardAdditive, InverseCompositional])
def test_recovers_affine(target, aligner_cls):
    true_warp = AffineWarp([0.03, 0.02, -0.02, 0.01, 30.0, 28.0])
    template = make_template(target, true_warp)

    aligner = aligner_cls()
    w = AffineWarp([0.0, 0.0, 0.0, 0.0, 28.5, 26.5])
    assert corner_error(w, true_warp) > 1.5

    aligner.prepare(template, target, w, 3)
    aligner.align(w, 150, 1e-5)

    assert corner_error(w, true_warp) < 0.3


@pytest.mark.parametrize("aligner_cls", [ForwardAdditive, InverseCompositional])
def test_error_decreases(target, aligner_cls):
    true_warp = TranslationWarp([40.0, 35.0])
    template = make_template(target, true_warp)

    initial = TranslationWarp([38.0, 36.5])

    reference = aligner_cls()
    reference.prepare(template, target, initial, 1)
    initial_error = reference.align_impl(initial.copy()).mean_error

    aligner = aligner_cls()
    w = initial.copy()
    aligner.prepare(template, target, w, 3)
    aligner.align(w, 60, 1e-4)

    assert aligner.last_error is not None
    assert aligner.last_error < initial_error


@pytest.mark.parametrize("aligner_cls", [ForwardAdditive, InverseCompositional])
def test_template_outside_target_gives_no_constraints(target, aligner_cls):
    template = make_template(target, TranslationWarp([30.0, 30.0]))

    aligner = aligner_cls()
    w = TranslationWarp([1000.0, 1000.0])
    aligner.prepare(template, target, w, 3)

    aligner.set_level(0)
    step = aligner.align_impl(w.copy())
    assert step.num_constraints == 0

    aligner.align(w, 30, 1e-4)
    np.testing.assert_allclose(w.params, [1000.0, 1000.0])
    assert aligner.iterations_performed == 0


@pytest.mark.parametrize("aligner_cls", [ForwardAdditive, InverseCompositional])
def test_partial_overlap_counts_valid_pixels(target, aligner_cls):
    template = make_template(target, TranslationWarp([30.0, 30.0]))

    aligner = aligner_cls(border=1)
    aligner.prepare(template, target, TranslationWarp(), 1)

    # Right half of the template falls outside the 128 px target
    step = aligner.align_impl(TranslationWarp([96.0, 30.0]))
    assert 0 < step.num_constraints < 64 * 64
    assert step.delta.shape == (2,)


def test_shared_target_pyramid(target):
    """Several templates aligned against one pre-built target pyramid"""
    pyramid = ImagePyramid.create(target, 4)
    truths = [TranslationWarp([20.3, 25.6]), TranslationWarp([45.8, 40.1])]

    for truth in truths:
        template = make_template(target, truth)
        aligner = InverseCompositional()
        w = TranslationWarp(truth.params + [2.0, -1.5])
        aligner.prepare(template, pyramid, w, 3)
        aligner.align(w, 60, 1e-4)

        assert aligner.num_levels == 3
        np.testing.assert_allclose(w.params, truth.params, atol=0.1)


def test_step_trace_converges(target):
    true_warp = TranslationWarp([30.4, 27.7])
    template = make_template(target, true_warp)

    aligner = ForwardAdditive()
    w = TranslationWarp([27.0, 25.0])
    steps = []
    aligner.prepare(template, target, w, 3)
    aligner.align(w, 60, 1e-4, steps)

    assert len(steps) == aligner.iterations_performed
    np.testing.assert_allclose(steps[-1].params, w.params)
    first = np.linalg.norm(steps[0].params - true_warp.params)
    last = np.linalg.norm(steps[-1].params - true_warp.params)
    assert last < first


# ============================================================================
# FACTORY
# ============================================================================

@pytest.mark.parametrize("name,cls", [
    ('forward_additive', ForwardAdditive),
    ('FA', ForwardAdditive),
    ('lucas-kanade', ForwardAdditive),
    ('inverse_compositional', InverseCompositional),
    ('ic', InverseCompositional),
])
def test_create_aligner(name, cls):
    assert isinstance(create_aligner(name), cls)


def test_create_aligner_border():
    assert create_aligner('ic', border=3).border == 3
    assert create_aligner('fa', border=0).border == 1


def test_create_aligner_unknown():
    with pytest.raises(ValueError):
        create_aligner('esm')


def test_available_aligners():
    assert available_aligners() == ['forward_additive', 'inverse_compositional']
