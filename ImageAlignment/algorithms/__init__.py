from .align_base import AlignBase
from .forward_additive import ForwardAdditive
from .inverse_compositional import InverseCompositional
from .factory import create_aligner, available_aligners

__all__ = [
    'AlignBase',
    'ForwardAdditive',
    'InverseCompositional',
    'create_aligner',
    'available_aligners',
]
