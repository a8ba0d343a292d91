"""
Forward-additive image alignment (Lucas-Kanade).

Minimizes sum_x [T(x) - I(W(x; p + dp))]^2 with a Gauss-Newton step
linearized around the current warp:

    dp = H^-1 * sum_x [grad(I) dW/dp]^T [T(x) - I(W(x; p))]

Target gradients are recomputed on every step at the warped positions,
the warp is updated additively: p <- p + dp.

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

logger = get_logger("algorithms.forward_additive")


class ForwardAdditive(AlignBase):
    """
    Forward-additive alignment on a sum-of-squared-differences error.

    Args:
        border: Minimum distance (pixels) a warped point must keep from the
            target border to count as a constraint. Must be at least one so
            bilinear sampling stays inside the image.
    """

    def __init__(self, border: int = 1):
        super().__init__()
        self.border = max(1, int(border))

        self._points: List[np.ndarray] = []
        self._template_values: List[np.ndarray] = []
        self._target_gx: List[np.ndarray] = []
        self._target_gy: List[np.ndarray] = []

    def prepare_impl(self, warp: Warp) -> None:
        self._points = []
        self._template_values = []
        self._target_gx = []
        self._target_gy = []

        for lev in range(self.num_levels):
            tmpl = self.template_pyramid[lev]
            self._points.append(pixel_grid(tmpl.shape))
            self._template_values.append(tmpl.ravel().astype(np.float64))

            gx, gy = image_gradients(self.target_pyramid[lev])
            self._target_gx.append(gx)
            self._target_gy.append(gy)

        logger.debug(f"Prepared {self.num_levels} levels for {type(warp).__name__}")

    def align_impl(self, warp: Warp) -> SingleStepResult:
        lev = self.level
        target = self.target_image()
        points = self._points[lev]

        warped = warp.warp_points(points)
        valid = points_in_image(warped, image_size(target), self.border)
        n = int(np.count_nonzero(valid))
        if n == 0:
            return SingleStepResult()

        warped = warped[valid]
        intensities = sample_bilinear(target, warped)
        gx = sample_bilinear(self._target_gx[lev], warped)
        gy = sample_bilinear(self._target_gy[lev], warped)

        errors = self._template_values[lev][valid] - intensities

        J = warp.jacobian(points[valid])
        sd = gx[:, None] * J[:, 0, :] + gy[:, None] * J[:, 1, :]

        hessian = sd.T @ sd
        delta = pinvh(hessian) @ (sd.T @ errors)

        return SingleStepResult(delta=delta,
                                sum_errors=float(errors @ errors),
                                num_constraints=n)

    def apply_step(self, warp: Warp, step: SingleStepResult) -> None:
        warp.update_additive(step.delta)
