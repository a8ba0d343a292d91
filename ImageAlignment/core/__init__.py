from .interfaces import AlignmentPolicy, SingleStepResult, AlignmentResult, AlignmentStatus
from .structures import Warp, ImagePyramid

__all__ = [
    'AlignmentPolicy',
    'SingleStepResult',
    'AlignmentResult',
    'AlignmentStatus',
    'Warp',
    'ImagePyramid',
]
