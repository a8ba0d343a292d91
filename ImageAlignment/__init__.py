"""
ImageAlignment - Coarse-to-fine parametric image alignment

Estimates the warp mapping a template image onto a target image by
iteratively minimizing a photometric error over image pyramids.
"""

from .logger import (
    setup_logger,
    get_logger,
    configure_root_logger,
    disable_console_logging
)
from .core.interfaces import (
    AlignmentPolicy,
    SingleStepResult,
    AlignmentResult,
    AlignmentStatus
)
from .core.structures import (
    Warp,
    TranslationWarp,
    EuclideanWarp,
    AffineWarp,
    HomographyWarp,
    create_warp,
    ImagePyramid
)
from .algorithms import (
    AlignBase,
    ForwardAdditive,
    InverseCompositional,
    create_aligner,
    available_aligners
)
from .config import AlignmentConfig
from .pipeline import align_images
from .utils import warp_image

__version__ = "1.0.0"
__all__ = [
    # Logging
    "setup_logger",
    "get_logger",
    "configure_root_logger",
    "disable_console_logging",

    # Interfaces
    "AlignmentPolicy",
    "SingleStepResult",
    "AlignmentResult",
    "AlignmentStatus",

    # Structures
    "Warp",
    "TranslationWarp",
    "EuclideanWarp",
    "AffineWarp",
    "HomographyWarp",
    "create_warp",
    "ImagePyramid",

    # Algorithms
    "AlignBase",
    "ForwardAdditive",
    "InverseCompositional",
    "create_aligner",
    "available_aligners",

    # Pipeline
    "AlignmentConfig",
    "align_images",
    "warp_image",
]
