"""
Factory for creating aligners by name.
"""

from typing import Dict, Type

from .align_base import AlignBase
from .forward_additive import ForwardAdditive
from .inverse_compositional import InverseCompositional


ALIGNERS: Dict[str, Type[AlignBase]] = {
    'forward_additive': ForwardAdditive,
    'inverse_compositional': InverseCompositional,
}

ALIASES: Dict[str, str] = {
    'fa': 'forward_additive',
    'lucas_kanade': 'forward_additive',
    'ic': 'inverse_compositional',
}


def available_aligners() -> list:
    """Canonical names accepted by create_aligner"""
    return list(ALIGNERS.keys())


def create_aligner(method: str, **kwargs) -> AlignBase:
    """
    Create an aligner by name.

    Args:
        method: Aligner name
            - 'forward_additive' (aliases: 'fa', 'lucas_kanade')
            - 'inverse_compositional' (alias: 'ic')
        **kwargs: Aligner-specific parameters
            - border: Minimum distance of valid points from the target border

    Returns:
        Configured aligner (AlignBase)

    Raises:
        ValueError: If the method is unknown

    Examples:
        >>> aligner = create_aligner('forward_additive')
        >>> aligner = create_aligner('ic', border=2)
    """
    key = method.lower().replace('-', '_')
    key = ALIASES.get(key, key)

    if key not in ALIGNERS:
        available = ', '.join(list(ALIGNERS.keys()) + list(ALIASES.keys()))
        raise ValueError(f"Unknown alignment method: {method}. Available: {available}")

    return ALIGNERS[key](**kwargs)
