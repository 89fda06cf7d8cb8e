"""Variation production from a base photo."""
from .producer import (
    MAX_IMAGES,
    MIN_IMAGES,
    BackgroundStrategy,
    FilterStrategy,
    RemoteStrategy,
    Variation,
    VariationProducer,
    VariationStrategy,
    build_producer,
    validate_count,
)

__all__ = [
    'MAX_IMAGES',
    'MIN_IMAGES',
    'BackgroundStrategy',
    'FilterStrategy',
    'RemoteStrategy',
    'Variation',
    'VariationProducer',
    'VariationStrategy',
    'build_producer',
    'validate_count',
]
