"""
Inverse-compositional image alignment.

Swaps the roles of template and target in the linearization, so gradients,
steepest-descent images and the Hessian depend on the template only and
are computed once per pyramid level in prepare_impl:

    dp = H^-1 * sum_x [grad(T) dW/dp(x; 0)]^T [I(W(x; p)) - T(x)]
    W(x; p) <- W(x; p) o W(x; dp)^-1

When part of the template warps outside the target, the Hessian is
rebuilt from the remaining constraints for that step.

Reference:
    Baker, S. and Matthews, I. "Lucas-Kanade 20 Years On: A Unifying
    Framework", IJCV 2004.
"""

from typing import List
import numpy as np
from scipy.linalg import pinvh

from ImageAlignment.algorithms.align_base import AlignBase
from ImageAlignment.core.interfaces import SingleStepResult
from ImageAlignment.core.structures import Warp
from ImageAlignment.logger import get_logger
from ImageAlignment.utils import (
    image_gradients,
    image_size,
    pixel_grid,
    points_in_image,
    sample_bilinear
)

logger = get_logger("algorithms.inverse_compositional")


class InverseCompositional(AlignBase):
    """
    Inverse-compositional alignment on a sum-of-squared-differences error.

    Args:
        border: Minimum distance (pixels) a warped point must keep from the
            target border to count as a constraint (at least one).
    """

    def __init__(self, border: int = 1):
        super().__init__()
        self.border = max(1, int(border))

        self._points: List[np.ndarray] = []
        self._template_values: List[np.ndarray] = []
        self._steepest_descent: List[np.ndarray] = []
        self._inv_hessian: List[np.ndarray] = []

    def prepare_impl(self, warp: Warp) -> None:
        self._points = []
        self._template_values = []
        self._steepest_descent = []
        self._inv_hessian = []

        identity = type(warp).identity()

        for lev in range(self.num_levels):
            tmpl = self.template_pyramid[lev]
            points = pixel_grid(tmpl.shape)

            gx, gy = image_gradients(tmpl)
            J = identity.jacobian(points)
            sd = (gx.ravel().astype(np.float64)[:, None] * J[:, 0, :] +
                  gy.ravel().astype(np.float64)[:, None] * J[:, 1, :])

            self._points.append(points)
            self._template_values.append(tmpl.ravel().astype(np.float64))
            self._steepest_descent.append(sd)
            self._inv_hessian.append(pinvh(sd.T @ sd))

        logger.debug(f"Precomputed steepest descent images for {self.num_levels} levels")

    def align_impl(self, warp: Warp) -> SingleStepResult:
        lev = self.level
        target = self.target_image()
        points = self._points[lev]

        warped = warp.warp_points(points)
        valid = points_in_image(warped, image_size(target), self.border)
        n = int(np.count_nonzero(valid))
        if n == 0:
            return SingleStepResult()

        intensities = sample_bilinear(target, warped[valid])
        errors = intensities - self._template_values[lev][valid]

        if n == len(points):
            sd = self._steepest_descent[lev]
            inv_hessian = self._inv_hessian[lev]
        else:
            sd = self._steepest_descent[lev][valid]
            inv_hessian = pinvh(sd.T @ sd)

        delta = inv_hessian @ (sd.T @ errors)

        return SingleStepResult(delta=delta,
                                sum_errors=float(errors @ errors),
                                num_constraints=n)

    def apply_step(self, warp: Warp, step: SingleStepResult) -> None:
        warp.update_inverse_compositional(step.delta)
