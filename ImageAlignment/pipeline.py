"""
High-level alignment entry point.

Wraps aligner creation, pyramid preparation and the coarse-to-fine loop
into a single call returning an AlignmentResult.

Usage:
    from ImageAlignment import align_images, TranslationWarp

    result = align_images(template, target, TranslationWarp([10, 5]),
                          config=AlignmentConfig(pyramid_levels=4))
    if result:
        print(result.warp)
"""

import time
from typing import Optional, Union
import numpy as np

from .algorithms import create_aligner
from .config import AlignmentConfig
from .core.interfaces import AlignmentResult, AlignmentStatus
from .core.structures import ImagePyramid, Warp
from .logger import get_logger

logger = get_logger("pipeline")


def align_images(template: np.ndarray,
                 target: Union[np.ndarray, ImagePyramid],
                 warp: Warp,
                 method: Optional[str] = None,
                 config: Optional[AlignmentConfig] = None,
                 keep_steps: bool = False) -> AlignmentResult:
    """
    Align a template with a target image.

    Args:
        template: Single channel template image
        target: Single channel target image or pre-built target pyramid
        warp: Initial warp estimate (not modified)
        method: Aligner name, overrides config.method
        config: Alignment configuration (defaults if omitted)
        keep_steps: Record every accepted intermediate warp

    Returns:
        AlignmentResult: Refined warp with diagnostics. Invalid inputs are
        reported through status INVALID_INPUT instead of raising.
    """
    config = config or AlignmentConfig()
    method = method or config.method

    try:
        config.validate()
        aligner = create_aligner(method, border=config.border)
    except ValueError as e:
        logger.error(f"Invalid alignment configuration: {e}")
        return AlignmentResult(success=False,
                               status=AlignmentStatus.INVALID_INPUT,
                               metadata={'error': str(e)})

    start_time = time.time()
    result_warp = warp.copy()
    steps = [] if keep_steps else None

    try:
        aligner.prepare(template, target, result_warp, config.pyramid_levels)
    except ValueError as e:
        logger.error(f"Alignment input rejected: {e}")
        return AlignmentResult(success=False,
                               status=AlignmentStatus.INVALID_INPUT,
                               metadata={'error': str(e)})

    aligner.align(result_warp, config.max_iterations, config.eps, steps)
    runtime = time.time() - start_time

    num_iterations = aligner.iterations_performed
    success = num_iterations > 0
    status = AlignmentStatus.SUCCESS if success else AlignmentStatus.NO_VALID_STEP

    logger.info(f"{aligner.get_algorithm_name()}: {num_iterations} steps on "
                f"{aligner.num_levels} levels in {runtime:.3f}s")

    return AlignmentResult(
        success=success,
        status=status,
        warp=result_warp,
        final_error=aligner.last_error,
        num_levels=aligner.num_levels,
        num_iterations=num_iterations,
        steps=steps or [],
        runtime=runtime,
        metadata={
            'method': aligner.get_algorithm_name(),
            'max_iterations': config.max_iterations,
            'eps': config.eps,
            'final_level': aligner.level,
        }
    )
