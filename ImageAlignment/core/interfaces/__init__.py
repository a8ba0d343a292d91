"""
Core interfaces.

Abstract contract between the alignment engine and the concrete
algorithms, plus the result records they exchange.

Usage:
    from ImageAlignment.core.interfaces import AlignmentPolicy, SingleStepResult

    class MyAligner(AlignBase):
        def prepare_impl(self, warp): ...
        def align_impl(self, warp): return SingleStepResult(...)
        def apply_step(self, warp, step): warp.update_additive(step.delta)
"""

from .base_alignment import (
    AlignmentPolicy,
    SingleStepResult,
    AlignmentResult,
    AlignmentStatus
)


__all__ = [
    'AlignmentPolicy',
    'SingleStepResult',
    'AlignmentResult',
    'AlignmentStatus',
]
