"""
Coarse-to-fine alignment engine.

AlignBase prepares template/target pyramids and drives the iterations of a
concrete alignment algorithm from the coarsest to the finest pyramid level.
Concrete algorithms derive from it and implement the AlignmentPolicy
methods (prepare_impl, align_impl, apply_step).

Warp rescaling:
    The caller always passes and receives warps parameterized for the
    full-resolution images. Internally the working warp is rescaled with
    ``Warp.scaled`` so that on every level it operates on that level's own
    pixel coordinates.
"""

import math
from typing import List, Optional, Tuple, Union
import numpy as np

from ImageAlignment.core.interfaces import AlignmentPolicy, SingleStepResult
from ImageAlignment.core.structures import ImagePyramid, Warp
from ImageAlignment.logger import get_logger
from ImageAlignment.utils import is_single_channel, image_size

logger = get_logger("engine")


class AlignBase(AlignmentPolicy):
    """
    Base class for alignment algorithms.

    Provides:
        - multi-level image pyramids for hierarchical matching
        - a common prepare/align interface
        - access to level, error and image information for derived classes

    Iterations on a level stop when
        - the per-level iteration budget is used up
        - a step has no valid constraints
        - the mean error increases
        - the step length drops below eps (the first step of a level is exempt)
    """

    def __init__(self):
        self._template_pyramid: Optional[ImagePyramid] = None
        self._target_pyramid: Optional[ImagePyramid] = None

        self._levels = 0
        self._level = 0
        self._error: Optional[float] = None
        self._iterations_performed = 0

    # ========================================================================
    # PREPARATION
    # ========================================================================

    def validate_input(self, template: np.ndarray,
                       target: Union[np.ndarray, ImagePyramid]) -> Tuple[bool, str]:
        """
        Validate template and target before building pyramids.

        Returns:
            Tuple[bool, str]: (is_valid, error_message)
        """
        if not is_single_channel(template):
            return False, f"Template must be single channel, got shape {np.shape(template)}"
        if np.size(template) == 0:
            return False, "Template image is empty"

        if isinstance(target, ImagePyramid):
            if target.num_levels < 1:
                return False, "Target pyramid has no levels"
            if not is_single_channel(target[0]):
                return False, f"Target pyramid must be single channel, got shape {target[0].shape}"
            if target[0].size == 0:
                return False, "Target pyramid has an empty finest level"
        elif not is_single_channel(target):
            return False, f"Target must be single channel, got shape {np.shape(target)}"
        elif np.size(target) == 0:
            return False, "Target image is empty"

        return True, ""

    def prepare(self, template: np.ndarray,
                target: Union[np.ndarray, ImagePyramid],
                warp: Warp,
                pyramid_levels: int) -> 'AlignBase':
        """
        Prepare for alignment.

        Builds the template pyramid and either builds the target pyramid or
        reuses a pre-built one. Passing a pre-built target pyramid is useful
        when several templates are tracked in the same target image: the
        pyramid is built once and shared (read-only) by all aligners.

        Args:
            template: Single channel template image
            target: Single channel target image, or a pre-built ImagePyramid
            warp: Initial warp
            pyramid_levels: Maximum number of pyramid levels to use

        Raises:
            ValueError: If an image is empty or not single channel, or the target pyramid is empty
        """
        is_valid, error_msg = self.validate_input(template, target)
        if not is_valid:
            raise ValueError(error_msg)

        max_levels = ImagePyramid.max_levels_for_image_size(image_size(np.asarray(template)))
        if isinstance(target, ImagePyramid):
            max_levels = min(max_levels, target.num_levels)
        else:
            max_levels = min(max_levels,
                             ImagePyramid.max_levels_for_image_size(image_size(np.asarray(target))))

        self._levels = max(1, min(int(pyramid_levels), max_levels))
        if self._levels != pyramid_levels:
            logger.debug(f"Requested {pyramid_levels} pyramid levels, using {self._levels}")

        self._template_pyramid = ImagePyramid.create(template, self._levels)

        if isinstance(target, ImagePyramid):
            if target.num_levels > self._levels:
                self._target_pyramid = target.slice(0, self._levels)
            else:
                self._target_pyramid = target
        else:
            self._target_pyramid = ImagePyramid.create(target, self._levels)

        self.set_level(0)

        self.prepare_impl(warp)
        return self

    # ========================================================================
    # ALIGNMENT
    # ========================================================================

    def align(self, warp: Warp, max_iterations: int, eps: float,
              steps: Optional[List[Warp]] = None) -> Warp:
        """
        Run iterations on all pyramid levels until a stopping criterion is met.

        Starts on the coarsest level and moves one level finer whenever the
        current level stops. The iteration budget is split evenly between
        levels (integer division, the remainder is not used).

        Args:
            warp: Current warp estimate. Updated in place with the result.
            max_iterations: Maximum number of iterations over all levels
            eps: Minimum step length to continue on the current level
            steps: Optional list receiving every accepted warp (full-resolution
                parameterization) for debugging

        Returns:
            Warp: The refined warp (same object as ``warp``)

        Raises:
            RuntimeError: If called before prepare()
        """
        if self._template_pyramid is None or self._target_pyramid is None:
            raise RuntimeError("prepare() must be called before align()")

        iterations_per_level = int(max_iterations) // self.num_levels
        self._iterations_performed = 0

        # Start one level below the coarsest, every level scales up by one
        ws = warp.scaled(-self.num_levels)

        for lev in range(self.num_levels - 1, -1, -1):
            self.set_level(lev)
            ws = ws.scaled(1)

            accepted = 0
            for it in range(iterations_per_level):
                step = self.align_impl(ws)

                if not self._accept_step(step, it == 0, eps):
                    break

                self.apply_step(ws, step)
                self._error = step.mean_error
                accepted += 1

                if steps is not None:
                    steps.append(ws.scaled(lev))

            self._iterations_performed += accepted
            logger.debug(f"Level {lev}: {accepted}/{iterations_per_level} steps accepted, "
                         f"error={self._error}")

        warp.set_params(ws.params)
        return warp

    def _accept_step(self, step: SingleStepResult, first_iteration: bool, eps: float) -> bool:
        """Accept/reject rule for one step on the active level"""
        new_error = step.mean_error
        if new_error is None:
            return False

        if self._error is None:
            # No previous error on this level
            if not math.isfinite(new_error):
                return False
        elif not (self._error - new_error >= 0.0):
            return False

        return first_iteration or step.delta_norm >= eps

    # ========================================================================
    # ACCESSORS
    # ========================================================================

    @property
    def num_levels(self) -> int:
        """Total number of pyramid levels in use"""
        return self._levels

    @property
    def last_error(self) -> Optional[float]:
        """Mean error of the last accepted step, None if unknown on the active level"""
        return self._error

    @property
    def iterations_performed(self) -> int:
        """Accepted steps over all levels during the last align() call"""
        return self._iterations_performed

    @property
    def level(self) -> int:
        """Active pyramid level (0 = finest)"""
        return self._level

    def set_level(self, level: int) -> 'AlignBase':
        """
        Switch the active pyramid level.

        The level is clamped to the valid range. The error is reset since
        errors from different levels are not comparable.
        """
        self._level = max(0, min(int(level), self.num_levels - 1))
        self._error = None
        return self

    def template_image(self) -> np.ndarray:
        return self._template_pyramid[self._level]

    def target_image(self) -> np.ndarray:
        return self._target_pyramid[self._level]

    @property
    def template_pyramid(self) -> Optional[ImagePyramid]:
        return self._template_pyramid

    @property
    def target_pyramid(self) -> Optional[ImagePyramid]:
        return self._target_pyramid

    @staticmethod
    def is_in_image(point, size: Tuple[int, int], border: int) -> bool:
        """
        Test if a point lies in the image.

        Point coordinates refer to pixel centres: the half-pixel offset is
        removed before flooring.

        Args:
            point: (x, y) image coordinates
            size: Image size as (width, height)
            border: Minimum distance from the image border in pixels
        """
        px, py = float(point[0]), float(point[1])
        if not (math.isfinite(px) and math.isfinite(py)):
            return False

        x = math.floor(px - 0.5)
        y = math.floor(py - 0.5)
        width, height = size

        return (x >= border and
                y >= border and
                x < width - border and
                y < height - border)

    def __repr__(self) -> str:
        return f"{self.get_algorithm_name()}(levels={self._levels}, level={self._level})"
