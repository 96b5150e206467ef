"""
Tests for dimension fitting, JPEG encoding and the quality search.
"""
import base64
import io

import pytest
from PIL import Image

from event_images import image_utils
from event_images.image_utils import (
    JPEG_DATA_URI_PREFIX,
    QUALITY_FLOOR,
    TargetDimensions,
    calculate_target_dimensions,
    convert_rgba_to_rgb,
    data_uri_to_bytes,
    encode_to_jpeg,
    render_to_size,
    search_quality,
    size_budget_chars,
    to_base64_data_uri,
)


class TestCalculateTargetDimensions:
    @pytest.mark.parametrize("w,h", [(400, 300), (1200, 800), (1, 1), (800, 800)])
    def test_no_upscaling_when_within_bounds(self, w, h):
        dims = calculate_target_dimensions(w, h, 1200, 800)
        assert (dims.width, dims.height) == (w, h)

    def test_landscape_clamps_width(self):
        dims = calculate_target_dimensions(3000, 2000, 1200, 800)
        assert dims.width == 1200
        assert dims.height == pytest.approx(800)

    def test_portrait_clamps_height(self):
        dims = calculate_target_dimensions(600, 900, 1200, 800)
        assert dims.height == 800
        assert dims.width == pytest.approx(533.333, abs=1e-3)

    def test_square_takes_portrait_branch(self):
        dims = calculate_target_dimensions(1000, 1000, 1200, 800)
        assert (dims.width, dims.height) == (800, 800)

    def test_landscape_branch_only_clamps_width(self):
        # Landscape branch clamps width alone; derived height follows the ratio.
        dims = calculate_target_dimensions(1300, 1000, 1200, 800)
        assert dims.width == 1200
        assert dims.height == pytest.approx(1200 / 1.3)

    @pytest.mark.parametrize(
        "w,h", [(3000, 2000), (600, 900), (5000, 100), (100, 5000), (1201, 799), (2000, 2000)]
    )
    def test_aspect_ratio_preserved(self, w, h):
        dims = calculate_target_dimensions(w, h, 1200, 800)
        assert abs(dims.width / dims.height - w / h) < 1e-6

    def test_rejects_non_positive(self):
        with pytest.raises(ValueError):
            calculate_target_dimensions(0, 100, 1200, 800)

    def test_pixel_size_truncates(self):
        assert TargetDimensions(533.33, 800).pixel_size == (533, 800)
        assert TargetDimensions(0.4, 10).pixel_size == (1, 10)


class TestConvertAndRender:
    def test_rgba_composited_on_white(self):
        img = Image.new("RGBA", (4, 4), (0, 0, 0, 0))
        out = convert_rgba_to_rgb(img)
        assert out.mode == "RGB"
        assert out.getpixel((0, 0)) == (255, 255, 255)

    def test_palette_with_transparency(self):
        img = Image.new("P", (4, 4), 0)
        img.info["transparency"] = 0
        assert convert_rgba_to_rgb(img).mode == "RGB"

    def test_render_resizes_to_pixel_size(self):
        img = Image.new("RGB", (600, 900))
        out = render_to_size(img, calculate_target_dimensions(600, 900, 1200, 800))
        assert out.size == (533, 800)

    def test_render_same_size_returns_rgb_source(self):
        img = Image.new("RGB", (40, 30))
        assert render_to_size(img, TargetDimensions(40, 30)) is img


class TestEncoding:
    def test_encode_produces_jpeg(self):
        data = encode_to_jpeg(Image.new("RGBA", (10, 10), (255, 0, 0, 128)), 0.8)
        assert Image.open(io.BytesIO(data)).format == "JPEG"

    def test_lower_quality_is_smaller(self, noise_bytes):
        img = Image.open(io.BytesIO(noise_bytes(200, 200)))
        assert len(encode_to_jpeg(img, 0.2)) < len(encode_to_jpeg(img, 0.9))

    def test_data_uri_prefix_and_roundtrip(self):
        uri = to_base64_data_uri(b"\xff\xd8abc")
        assert uri.startswith(JPEG_DATA_URI_PREFIX)
        assert data_uri_to_bytes(uri) == b"\xff\xd8abc"

    @pytest.mark.parametrize("bad", ["hello", "data:image/jpeg,abc", "data:image/jpeg;base64,@@@"])
    def test_data_uri_to_bytes_rejects_garbage(self, bad):
        with pytest.raises(ValueError):
            data_uri_to_bytes(bad)

    def test_budget_uses_fixed_overhead(self):
        assert size_budget_chars(500) == pytest.approx(500 * 1024 * 1.37)


class TestSearchQuality:
    def _record_qualities(self, monkeypatch, size_for_quality):
        """Replace the encoder with a fake whose output size depends on quality."""
        seen = []

        def fake_encode(image, quality=0.8):
            seen.append(quality)
            return b"x" * size_for_quality(quality)

        monkeypatch.setattr(image_utils, "encode_to_jpeg", fake_encode)
        return seen

    def test_no_budget_encodes_once(self, monkeypatch):
        seen = self._record_qualities(monkeypatch, lambda q: 2_000_000)
        result = search_quality(Image.new("RGB", (10, 10)), quality=0.8, max_size_kb=None)
        assert seen == [0.8]
        assert result.quality == 0.8

    def test_zero_budget_means_no_search(self, monkeypatch):
        seen = self._record_qualities(monkeypatch, lambda q: 2_000_000)
        search_quality(Image.new("RGB", (10, 10)), quality=0.8, max_size_kb=0)
        assert seen == [0.8]

    def test_steps_down_by_tenths_until_under_budget(self, monkeypatch):
        # 100 000 bytes at 0.8, 12 500 fewer per step; budget 50 KB
        seen = self._record_qualities(monkeypatch, lambda q: round(q * 10) * 12_500)
        result = search_quality(Image.new("RGB", (10, 10)), quality=0.8, max_size_kb=50)
        assert seen == [0.8, 0.7, 0.6, 0.5, 0.4]
        assert result.quality == 0.4
        assert len(result.data_uri) <= size_budget_chars(50)

    def test_floor_returns_best_effort(self, monkeypatch):
        seen = self._record_qualities(monkeypatch, lambda q: 2_000_000)
        result = search_quality(Image.new("RGB", (10, 10)), quality=0.8, max_size_kb=1)
        assert seen == [0.8, 0.7, 0.6, 0.5, 0.4, 0.3, 0.2, 0.1]
        assert result.quality == QUALITY_FLOOR
        assert result.size_bytes == 2_000_000

    def test_never_below_floor_for_off_grid_start(self, monkeypatch):
        seen = self._record_qualities(monkeypatch, lambda q: 2_000_000)
        search_quality(Image.new("RGB", (10, 10)), quality=0.85, max_size_kb=1)
        assert min(seen) == QUALITY_FLOOR
        assert seen[:2] == [0.85, 0.75]
        assert all(a > b for a, b in zip(seen, seen[1:]))

    def test_start_at_floor_does_not_loop(self, monkeypatch):
        seen = self._record_qualities(monkeypatch, lambda q: 2_000_000)
        search_quality(Image.new("RGB", (10, 10)), quality=0.1, max_size_kb=1)
        assert seen == [0.1]

    def test_real_encode_reports_dimensions(self):
        result = search_quality(Image.new("RGB", (64, 48), (10, 200, 30)), 0.8, 500)
        assert result.data_uri.startswith(JPEG_DATA_URI_PREFIX)
        assert (result.width, result.height) == (64, 48)
        assert len(base64.b64decode(result.data_uri.split(",", 1)[1])) == result.size_bytes
