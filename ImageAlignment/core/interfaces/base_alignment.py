"""
Base interface for alignment algorithms.

This defines the contract between the coarse-to-fine alignment engine and
the concrete algorithms (forward-additive, inverse-compositional, ...) that
compute and apply a single refinement step.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, List
from dataclasses import dataclass, field
from enum import Enum
import numpy as np

from ImageAlignment.core.structures.warp import Warp
from ImageAlignment.logger import get_logger

logger = get_logger("core.interfaces")


@dataclass
class SingleStepResult:
    """
    Output of one refinement step.

    Attributes:
        delta: Candidate parameter update
        sum_errors: Sum of the per-constraint errors of this step
        num_constraints: Number of pixels/features that contributed
    """
    delta: Optional[np.ndarray] = None
    sum_errors: float = 0.0
    num_constraints: int = 0

    @property
    def mean_error(self) -> Optional[float]:
        """Mean error per constraint, None if nothing contributed"""
        if self.num_constraints <= 0:
            return None
        return float(self.sum_errors) / float(self.num_constraints)

    @property
    def delta_norm(self) -> float:
        if self.delta is None:
            return 0.0
        return float(np.linalg.norm(self.delta))


class AlignmentStatus(Enum):
    """Status codes for alignment results"""
    SUCCESS = "success"
    NO_VALID_STEP = "no_valid_step"
    INVALID_INPUT = "invalid_input"


@dataclass
class AlignmentResult:
    """
    Result of a complete alignment run.

    Attributes:
        success: Whether alignment produced at least one accepted step
        status: Status code from AlignmentStatus
        warp: Refined warp in full-resolution parameterization
        final_error: Mean error of the last accepted step on the finest level (None if none)
        num_levels: Pyramid levels actually used
        num_iterations: Accepted steps over all levels
        steps: Intermediate warps (level-0 parameterization), if requested
        runtime: Alignment runtime in seconds
        metadata: Additional algorithm-specific information
    """
    success: bool
    status: AlignmentStatus
    warp: Optional[Warp] = None
    final_error: Optional[float] = None
    num_levels: int = 0
    num_iterations: int = 0
    steps: List[Warp] = field(default_factory=list)
    runtime: float = 0.0
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __bool__(self) -> bool:
        """Allow truthiness check"""
        return self.success

    def print_summary(self):
        """Log alignment result summary"""
        logger.info("=" * 60)
        logger.info("ALIGNMENT RESULT")
        logger.info("=" * 60)
        logger.info(f"Status: {self.status.value}")
        logger.info(f"Warp: {self.warp}")
        logger.info(f"Levels: {self.num_levels}")
        logger.info(f"Accepted steps: {self.num_iterations}")
        logger.info(f"Runtime: {self.runtime:.3f}s")
        if self.final_error is not None:
            logger.info(f"Final mean error: {self.final_error:.6f}")

        if self.metadata:
            logger.info("Metadata:")
            for key, value in self.metadata.items():
                if isinstance(value, float):
                    logger.info(f"  {key}: {value:.6f}")
                else:
                    logger.info(f"  {key}: {value}")
        logger.info("=" * 60)


class AlignmentPolicy(ABC):
    """
    Capability every concrete alignment algorithm provides.

    The engine (AlignBase) owns pyramids, level switching and the
    accept/reject rules; a policy only knows how to compute one step on the
    active level and how to fold an accepted step into the warp.
    """

    @abstractmethod
    def prepare_impl(self, warp: Warp) -> None:
        """
        One-time setup after the pyramids have been built.

        Args:
            warp: Initial warp (full-resolution parameterization)
        """
        pass

    @abstractmethod
    def align_impl(self, warp: Warp) -> SingleStepResult:
        """
        Compute one refinement step on the active pyramid level.

        Args:
            warp: Current warp, parameterized for the active level

        Returns:
            SingleStepResult: Candidate delta, summed error, constraint count
        """
        pass

    @abstractmethod
    def apply_step(self, warp: Warp, step: SingleStepResult) -> None:
        """
        Apply an accepted step to the warp in place.

        Args:
            warp: Warp to update
            step: Accepted step
        """
        pass

    def get_algorithm_name(self) -> str:
        return self.__class__.__name__
