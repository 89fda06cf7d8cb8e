"""Produce image variations from a single base photo.

Strategies:
- FilterStrategy: deterministic local pixel filters (no network)
- BackgroundStrategy: subject cut-out composited on gradient backgrounds
- RemoteStrategy: remote provider under the rate limiter, with a per-item
  local fallback

A batch never aborts because of one item: failed items fall back or are
skipped, so the result may hold fewer variations than requested.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

from PIL import UnidentifiedImageError

from pfp_rotator.config import BackendConfig
from pfp_rotator.exceptions import InvalidArgument
from pfp_rotator.util.gemini import GeminiAPI
from pfp_rotator.util.rate_limiter import RateLimiter
from pfp_rotator.variations.backgrounds import composite_on_background, extract_subject
from pfp_rotator.variations.filters import DEFAULT_SIZE, filter_variation, load_image
from pfp_rotator.variations.prompts import prompt_for

logger = logging.getLogger(__name__)

MIN_IMAGES = 1
MAX_IMAGES = 50


@dataclass
class Variation:
    """One produced image."""
    index: int
    data: bytes
    label: str


def validate_count(count: int) -> int:
    """Raise InvalidArgument unless ``count`` is within 1..50."""
    if isinstance(count, bool) or not isinstance(count, int) or not MIN_IMAGES <= count <= MAX_IMAGES:
        raise InvalidArgument(f"Number of images must be between {MIN_IMAGES} and {MAX_IMAGES}")
    return count


class VariationStrategy(ABC):
    """Base class for variation strategies."""

    label: str = "variation"

    async def prepare(self, base_image: bytes) -> None:
        """Per-batch setup, run once before the first item."""
        return None

    @abstractmethod
    async def make(self, base_image: bytes, index: int) -> Variation:
        """Produce item ``index``."""
        pass


class FilterStrategy(VariationStrategy):
    """Local resize/saturation/brightness/hue/blur transform."""

    label = "local-filter"

    def __init__(self, size: int = DEFAULT_SIZE):
        self.size = size

    async def make(self, base_image: bytes, index: int) -> Variation:
        data = await asyncio.to_thread(filter_variation, base_image, index, self.size)
        return Variation(index=index, data=data, label=self.label)


class BackgroundStrategy(VariationStrategy):
    """Subject cut-out on one of ten gradient backgrounds."""

    label = "local-background"

    def __init__(self, use_rembg: bool = False, size: int = DEFAULT_SIZE):
        self.use_rembg = use_rembg
        self.size = size
        self._subject = None
        self._subject_source: Optional[bytes] = None

    async def prepare(self, base_image: bytes) -> None:
        # Extraction is the expensive part; do it once per base photo
        if self._subject is None or self._subject_source is not base_image:
            self._subject = await extract_subject(base_image, use_rembg=self.use_rembg)
            self._subject_source = base_image

    async def make(self, base_image: bytes, index: int) -> Variation:
        await self.prepare(base_image)
        data = await asyncio.to_thread(composite_on_background, self._subject, index, self.size)
        return Variation(index=index, data=data, label=self.label)


class RemoteStrategy(VariationStrategy):
    """Remote provider call gated by the rate limiter."""

    def __init__(self, api: GeminiAPI, rate_limiter: RateLimiter, fallback: VariationStrategy):
        self.api = api
        self.rate_limiter = rate_limiter
        self.fallback = fallback

    async def make(self, base_image: bytes, index: int) -> Variation:
        prompt = prompt_for(index)
        await self.rate_limiter.admit()
        data = await self.api.generate_variation(base_image, prompt)
        return Variation(index=index, data=data, label=prompt)


class VariationProducer:
    """Produce ``count`` variations of a base photo with one strategy."""

    def __init__(self, strategy: VariationStrategy):
        self.strategy = strategy

    async def produce(self, base_image: bytes, count: int) -> List[Variation]:
        """
        Produce up to ``count`` variations in request order.

        Args:
            base_image: Encoded base photo
            count: Number of variations (1..50)

        Returns:
            Variations that were produced; may be shorter than ``count``

        Raises:
            InvalidArgument: count out of range or base photo not decodable
        """
        validate_count(count)
        try:
            await asyncio.to_thread(load_image, base_image)
        except (UnidentifiedImageError, OSError) as e:
            raise InvalidArgument(f"Base photo is not a readable image: {e}") from e

        fallback = getattr(self.strategy, "fallback", None)

        results: List[Variation] = []
        for i in range(count):
            variation = await self._make_one(base_image, i, fallback)
            if variation is not None:
                results.append(variation)
                logger.info(f"Generated image {i + 1}/{count} ({variation.label})")

        logger.info(f"Produced {len(results)}/{count} variations")
        return results

    async def _make_one(
        self,
        base_image: bytes,
        index: int,
        fallback: Optional[VariationStrategy]
    ) -> Optional[Variation]:
        try:
            return await self.strategy.make(base_image, index)
        except Exception as e:
            if fallback is None:
                logger.error(f"Variation {index + 1} failed: {e}")
                return None
            logger.warning(f"API gen failed {index + 1}: {e}; using local fallback")

        try:
            variation = await fallback.make(base_image, index)
        except Exception as e:
            logger.error(f"Fallback failed {index + 1}: {e}")
            return None
        variation.label = f"{fallback.label}-fallback"
        return variation


def build_local_strategy(config: BackendConfig, size: int = DEFAULT_SIZE) -> VariationStrategy:
    """Local strategy selected by BACKGROUND_REPLACEMENT."""
    if config.background_replacement:
        return BackgroundStrategy(use_rembg=config.use_rembg, size=size)
    return FilterStrategy(size=size)


def build_producer(
    config: BackendConfig,
    rate_limiter: Optional[RateLimiter] = None,
    size: int = DEFAULT_SIZE
) -> VariationProducer:
    """
    Build a producer from configuration.

    LOCAL_VARIATIONS selects the local strategy; otherwise the remote
    strategy is used with the local strategy as per-item fallback.

    Raises:
        ConfigurationError: Remote mode without AI_API_KEY
    """
    local = build_local_strategy(config, size=size)
    if config.local_mode:
        logger.info(f"Variation mode: local ({local.label})")
        return VariationProducer(local)

    api = GeminiAPI(api_key=config.api_key, model_name=config.image_model)
    logger.info(f"Variation mode: remote ({api.model_name}) with {local.label} fallback")
    return VariationProducer(RemoteStrategy(api, rate_limiter or RateLimiter(), fallback=local))
