# Copyright 2025 The HuggingFace Inc. team. All rights reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

# Example of running a specific test:
# ```bash
# pytest tests/depth/test_colorizer.py::test_colorize_16bit
# ```

import numpy as np
import pytest

from depthpicker.cameras.frames import DepthFrame
from depthpicker.depth.colorizer import ColorizerConfig, ColorRaster, DepthColorizer
from depthpicker.depth.hue import hue_map


def expected_16bit(sample: int, gain: float = 5.0) -> tuple[int, int, int, int]:
    return (*hue_map(np.float32(sample) / np.float32(65535) * np.float32(gain)), 255)


def pixel(raster: ColorRaster, x: int, y: int) -> tuple[int, int, int, int]:
    return tuple(int(c) for c in raster.view()[y, x])


def test_colorize_16bit(colorizer):
    depth = np.array([[0, 65535], [32768, 16384]], dtype=np.uint16)

    raster = colorizer.colorize(DepthFrame.from_array(depth))

    assert (raster.width, raster.height) == (2, 2)
    assert pixel(raster, 0, 0) == (255, 0, 0, 255)
    # Everything above a fifth of the range is clamped to violet.
    assert pixel(raster, 1, 0) == (255, 0, 255, 255)
    assert pixel(raster, 0, 1) == (255, 0, 255, 255)
    assert pixel(raster, 1, 1) == (255, 0, 255, 255)
    for y, x in np.ndindex(depth.shape):
        assert pixel(raster, x, y) == expected_16bit(int(depth[y, x]))


def test_colorize_16bit_gradient(colorizer):
    depth = np.arange(0, 13107, 97, dtype=np.uint16)[:135].reshape(9, 15)

    raster = colorizer.colorize(DepthFrame.from_array(depth))

    for y, x in np.ndindex(depth.shape):
        assert pixel(raster, x, y) == expected_16bit(int(depth[y, x]))


def test_colorize_16bit_gain():
    depth = np.array([[6553, 32767]], dtype=np.uint16)
    with DepthColorizer(ColorizerConfig(gain=1.0, num_workers=1)) as colorizer:
        raster = colorizer.colorize(DepthFrame.from_array(depth))

    assert pixel(raster, 0, 0) == expected_16bit(6553, gain=1.0)
    assert pixel(raster, 1, 0) == expected_16bit(32767, gain=1.0)


@pytest.mark.parametrize(
    "sample, gray",
    [
        (0x00000000, 255),
        (0x0000FFFF, 255),
        (0x00800000, 127),
        (0x00FF0000, 0),
        (0x01230000, 255 - 0x23),
        (0xFFFF0000, 0),
    ],
)
def test_colorize_32bit(colorizer, sample, gray):
    depth = np.full((2, 3), sample, dtype=np.uint32)

    raster = colorizer.colorize(DepthFrame.from_array(depth))

    np.testing.assert_array_equal(raster.view()[..., :3], gray)
    np.testing.assert_array_equal(raster.view()[..., 3], 255)


def test_colorize_padded_rows(colorizer):
    depth = np.arange(20, dtype=np.uint16).reshape(4, 5) * 611
    row_bytes = 10
    buffer = np.full((4, row_bytes + 6), 0xFF, dtype=np.uint8)
    buffer[:, :row_bytes] = depth.view(np.uint8).reshape(4, row_bytes)
    padded = DepthFrame(
        width=5, height=4, bytes_per_pixel=2, stride_in_bytes=row_bytes + 6, data=buffer.reshape(-1)
    )

    from_padded = colorizer.colorize(padded).view().copy()
    from_packed = colorizer.colorize(DepthFrame.from_array(depth)).view()

    np.testing.assert_array_equal(from_padded, from_packed)


def test_raster_is_reused_and_resized(colorizer):
    small = DepthFrame.from_array(np.full((2, 2), 1000, dtype=np.uint16))
    large = DepthFrame.from_array(np.full((3, 4), 1000, dtype=np.uint16))

    raster = colorizer.colorize(large)
    pixels = raster.pixels
    assert colorizer.colorize(large).pixels is pixels

    raster = colorizer.colorize(small)
    assert raster.pixels.shape == (2, 2, 4)
    assert raster.pixels is not pixels
    assert pixel(raster, 1, 1) == expected_16bit(1000)

    raster = colorizer.colorize(large)
    assert raster.pixels.shape == (3, 4, 4)


def test_unsupported_sample_size_keeps_raster(colorizer):
    colorizer.colorize(DepthFrame.from_array(np.zeros((2, 2), dtype=np.uint16)))
    before = colorizer.raster.view().copy()
    frame = DepthFrame(width=3, height=3, bytes_per_pixel=3, stride_in_bytes=9, data=np.zeros(27, dtype=np.uint8))

    with pytest.raises(ValueError):
        colorizer.colorize(frame)

    np.testing.assert_array_equal(colorizer.raster.view(), before)


@pytest.mark.parametrize("bytes_per_pixel", [2, 4])
@pytest.mark.parametrize("height", [1, 7, 64])
def test_parallel_matches_inline(bytes_per_pixel, height):
    rng = np.random.default_rng(0)
    dtype = np.uint16 if bytes_per_pixel == 2 else np.uint32
    depth = rng.integers(0, np.iinfo(dtype).max, size=(height, 33), dtype=dtype, endpoint=True)
    frame = DepthFrame.from_array(depth)

    with DepthColorizer(ColorizerConfig(num_workers=1)) as inline:
        expected = inline.colorize(frame).view().copy()
    with DepthColorizer(ColorizerConfig(num_workers=4)) as parallel:
        result = parallel.colorize(frame).view()

    np.testing.assert_array_equal(result, expected)


def test_raster_view_is_read_only(colorizer):
    raster = colorizer.colorize(DepthFrame.from_array(np.zeros((2, 2), dtype=np.uint16)))
    with pytest.raises(ValueError):
        raster.view()[0, 0, 0] = 1


def test_empty_raster():
    raster = ColorRaster()
    assert (raster.width, raster.height) == (0, 0)
    raster.resize(3, 2)
    assert raster.pixels.shape == (2, 3, 4)


def test_invalid_config():
    with pytest.raises(ValueError):
        ColorizerConfig(num_workers=0)
