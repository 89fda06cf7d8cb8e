"""Tests for VariationProducer and its strategies."""

import hashlib
from io import BytesIO
from unittest.mock import AsyncMock, MagicMock

import pytest
from PIL import Image

from pfp_rotator.config import BackendConfig
from pfp_rotator.exceptions import ConfigurationError, InvalidArgument, UpstreamApiError
from pfp_rotator.variations import (
    BackgroundStrategy,
    FilterStrategy,
    RemoteStrategy,
    Variation,
    VariationProducer,
    VariationStrategy,
    build_producer,
    validate_count,
)
from pfp_rotator.variations.prompts import PROMPTS, prompt_for


def pixel_hash(data: bytes) -> str:
    with Image.open(BytesIO(data)) as img:
        return hashlib.sha256(img.tobytes()).hexdigest()


class FailingStrategy(VariationStrategy):
    """Fails for the given indices, succeeds with a marker otherwise."""

    label = "failing"

    def __init__(self, fail_on):
        self.fail_on = set(fail_on)

    async def make(self, base_image, index):
        if index in self.fail_on:
            raise RuntimeError(f"item {index} broke")
        return Variation(index=index, data=f"ok-{index}".encode(), label=self.label)


@pytest.mark.unit
class TestValidateCount:
    """Image count bounds."""

    @pytest.mark.parametrize("count", [1, 10, 50])
    def test_accepts_range(self, count):
        assert validate_count(count) == count

    @pytest.mark.parametrize("count", [0, -1, 51, True])
    def test_rejects_out_of_range(self, count):
        with pytest.raises(InvalidArgument, match="between 1 and 50"):
            validate_count(count)


@pytest.mark.unit
class TestLocalProduction:
    """Local strategies end to end."""

    @pytest.mark.asyncio
    async def test_filter_batch_is_distinct(self, photo_bytes):
        """Ten local variations are produced in order with distinct pixels."""
        producer = VariationProducer(FilterStrategy(size=32))

        variations = await producer.produce(photo_bytes, 10)

        assert [v.index for v in variations] == list(range(10))
        assert all(v.label == "local-filter" for v in variations)
        assert len({pixel_hash(v.data) for v in variations}) == 10

    @pytest.mark.asyncio
    async def test_background_batch(self, white_background_photo):
        """Background strategy labels its output and varies by palette."""
        producer = VariationProducer(BackgroundStrategy(size=32))

        variations = await producer.produce(white_background_photo, 3)

        assert len(variations) == 3
        assert all(v.label == "local-background" for v in variations)
        assert len({v.data for v in variations}) == 3

    @pytest.mark.asyncio
    async def test_rejects_bad_count_before_work(self, photo_bytes):
        """Out-of-range counts fail fast."""
        producer = VariationProducer(FilterStrategy(size=32))
        with pytest.raises(InvalidArgument):
            await producer.produce(photo_bytes, 51)

    @pytest.mark.asyncio
    async def test_rejects_undecodable_base(self):
        """A base photo that is not an image is an InvalidArgument."""
        producer = VariationProducer(FilterStrategy(size=32))
        with pytest.raises(InvalidArgument, match="not a readable image"):
            await producer.produce(b"definitely not an image", 2)

    @pytest.mark.asyncio
    async def test_failed_items_are_skipped(self, photo_bytes):
        """Without a fallback, failing items are dropped and the rest kept."""
        producer = VariationProducer(FailingStrategy(fail_on={1, 3}))

        variations = await producer.produce(photo_bytes, 5)

        assert [v.index for v in variations] == [0, 2, 4]


@pytest.mark.unit
class TestRemoteStrategy:
    """Remote provider with rate limiting and per-item fallback."""

    def make_remote(self, side_effect, fallback=None):
        api = MagicMock()
        api.generate_variation = AsyncMock(side_effect=side_effect)
        limiter = MagicMock()
        limiter.admit = AsyncMock()
        strategy = RemoteStrategy(api, limiter, fallback=fallback or FilterStrategy(size=32))
        return strategy, api, limiter

    @pytest.mark.asyncio
    async def test_uses_prompt_table_and_rate_limiter(self, photo_bytes):
        """Each item is admitted once and labelled with its prompt."""
        strategy, api, limiter = self.make_remote(side_effect=[b"img-0", b"img-1", b"img-2"])

        variations = await VariationProducer(strategy).produce(photo_bytes, 3)

        assert [v.data for v in variations] == [b"img-0", b"img-1", b"img-2"]
        assert [v.label for v in variations] == PROMPTS[:3]
        assert limiter.admit.await_count == 3
        assert api.generate_variation.await_args_list[2].args == (photo_bytes, PROMPTS[2])

    @pytest.mark.asyncio
    async def test_failed_item_falls_back_locally(self, photo_bytes):
        """An upstream error for one item is replaced by a local variation."""
        strategy, api, limiter = self.make_remote(
            side_effect=[b"img-0", UpstreamApiError(500, "boom"), b"img-2"]
        )

        variations = await VariationProducer(strategy).produce(photo_bytes, 3)

        assert len(variations) == 3
        assert variations[0].data == b"img-0"
        assert variations[1].label == "local-filter-fallback"
        assert variations[1].index == 1
        assert variations[2].data == b"img-2"

    @pytest.mark.asyncio
    async def test_fallback_failure_skips_item(self, photo_bytes):
        """If the fallback also fails the item is skipped."""
        strategy, api, limiter = self.make_remote(
            side_effect=UpstreamApiError(429, "quota"),
            fallback=FailingStrategy(fail_on={0})
        )

        variations = await VariationProducer(strategy).produce(photo_bytes, 2)

        assert [v.index for v in variations] == [1]
        assert variations[0].label == "failing-fallback"

    def test_prompt_table_wraps(self):
        """Item i uses prompt i mod 20."""
        assert len(PROMPTS) == 20
        assert prompt_for(23) == PROMPTS[3]


@pytest.mark.unit
class TestBuildProducer:
    """Strategy selection from configuration."""

    def test_local_mode_filters(self):
        producer = build_producer(BackendConfig(local_mode=True))
        assert isinstance(producer.strategy, FilterStrategy)

    def test_local_mode_backgrounds(self):
        producer = build_producer(BackendConfig(local_mode=True, background_replacement=True, use_rembg=True))
        assert isinstance(producer.strategy, BackgroundStrategy)
        assert producer.strategy.use_rembg is True

    def test_remote_without_key_raises(self):
        """Remote mode needs AI_API_KEY."""
        with pytest.raises(ConfigurationError):
            build_producer(BackendConfig(local_mode=False, api_key=None))

    def test_remote_with_local_fallback(self, monkeypatch):
        """Remote mode wraps the provider with the local strategy as fallback."""
        monkeypatch.setattr("pfp_rotator.util.gemini.genai.Client", MagicMock())

        producer = build_producer(BackendConfig(local_mode=False, api_key="test-key"))

        assert isinstance(producer.strategy, RemoteStrategy)
        assert isinstance(producer.strategy.fallback, FilterStrategy)
