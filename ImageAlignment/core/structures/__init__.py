from .warp import (
    Warp,
    TranslationWarp,
    EuclideanWarp,
    AffineWarp,
    HomographyWarp,
    WARP_TYPES,
    create_warp
)
from .image_pyramid import ImagePyramid, MIN_LEVEL_SIZE

__all__ = [
    # Warps
    'Warp',
    'TranslationWarp',
    'EuclideanWarp',
    'AffineWarp',
    'HomographyWarp',
    'WARP_TYPES',
    'create_warp',

    # Pyramid
    'ImagePyramid',
    'MIN_LEVEL_SIZE',
]
