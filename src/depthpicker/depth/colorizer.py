#!/usr/bin/env python

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

"""
Depth colorization into a reusable RGBA raster.

16-bit samples are normalized, amplified by `gain` and mapped through the hue wheel.
32-bit samples are shown as inverted grayscale of their high 16 bits so that closer
points render brighter. Rows are independent, so the frame is cut into bands of rows
that are colorized concurrently, each band writing its own slice of the raster.
"""

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

import numpy as np

from depthpicker.cameras.frames import DepthFrame

from .hue import hue_map_array

logger = logging.getLogger(__name__)

MAX_DEPTH_16BIT = np.float32(np.iinfo(np.uint16).max)


@dataclass
class ColorizerConfig:
    # Amplification of normalized 16-bit depth before the hue mapping. With 5.0 the
    # first fifth of the sensor range spans the whole red -> violet sweep.
    gain: float = 5.0
    # Threads colorizing row bands. None uses the CPU count, capped at 8. 1 runs inline.
    num_workers: int | None = None

    def __post_init__(self) -> None:
        if self.num_workers is not None and self.num_workers < 1:
            raise ValueError(f"`num_workers` must be at least 1, got {self.num_workers}.")


class ColorRaster:
    """RGBA `uint8` image of shape `(height, width, 4)`, reused across frames of the same size."""

    def __init__(self, width: int = 0, height: int = 0):
        self.pixels = np.zeros((height, width, 4), dtype=np.uint8)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.width}x{self.height})"

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    def resize(self, width: int, height: int) -> None:
        """Replaces the pixels with a blank buffer of exactly `width` x `height`."""
        self.pixels = np.zeros((height, width, 4), dtype=np.uint8)

    def view(self) -> np.ndarray:
        """Read-only view of the pixels, valid until the next colorization."""
        view = self.pixels.view()
        view.flags.writeable = False
        return view


class DepthColorizer:
    """Converts depth frames to a `ColorRaster`, pixel for pixel.

    The raster is owned by the colorizer and rewritten in place by every call to
    `colorize`; it is only reallocated when the frame size changes.

    Example:
        ```python
        with DepthColorizer(ColorizerConfig(num_workers=4)) as colorizer:
            raster = colorizer.colorize(frame)
            cv2.imshow("depth", cv2.cvtColor(raster.view(), cv2.COLOR_RGBA2BGR))
        ```
    """

    def __init__(self, config: ColorizerConfig | None = None):
        self.config = config if config is not None else ColorizerConfig()
        self.gain = np.float32(self.config.gain)
        self.num_workers = self.config.num_workers or min(os.cpu_count() or 1, 8)

        self.raster = ColorRaster()
        self._executor: ThreadPoolExecutor | None = None
        if self.num_workers > 1:
            self._executor = ThreadPoolExecutor(max_workers=self.num_workers, thread_name_prefix="colorizer")

    def __enter__(self) -> "DepthColorizer":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def colorize(self, frame: DepthFrame) -> ColorRaster:
        """Colorizes `frame` into the raster and returns it.

        Raises:
            ValueError: If the frame's sample size is neither 2 nor 4 bytes.
        """
        start_time = time.perf_counter()

        samples = frame.samples()
        if (self.raster.width, self.raster.height) != (frame.width, frame.height):
            logger.debug(f"Resizing {self.raster} to {frame.width}x{frame.height}.")
            self.raster.resize(frame.width, frame.height)

        bands = self._row_bands(frame.height)
        if self._executor is None or len(bands) == 1:
            for start, stop in bands:
                self._colorize_rows(samples, frame.bytes_per_pixel, start, stop)
        else:
            futures = [
                self._executor.submit(self._colorize_rows, samples, frame.bytes_per_pixel, start, stop)
                for start, stop in bands
            ]
            for future in futures:
                future.result()

        logger.debug(f"Colorized {frame.width}x{frame.height} frame in {(time.perf_counter() - start_time) * 1e3:.1f}ms")
        return self.raster

    def _row_bands(self, height: int) -> list[tuple[int, int]]:
        n = max(1, min(self.num_workers, height))
        bounds = [height * i // n for i in range(n + 1)]
        return list(zip(bounds[:-1], bounds[1:]))

    def _colorize_rows(self, samples: np.ndarray, bytes_per_pixel: int, start: int, stop: int) -> None:
        rows = samples[start:stop]
        out = self.raster.pixels[start:stop]

        if bytes_per_pixel == 2:
            normalized = rows.astype(np.float32) / MAX_DEPTH_16BIT
            out[..., :3] = hue_map_array(normalized * self.gain)
        else:
            # Keep the low byte of the high 16 bits, as an 8-bit cast of `sample / 65536` does.
            gray = np.uint8(255) - (rows >> 16).astype(np.uint8)
            out[..., :3] = gray[..., np.newaxis]
        out[..., 3] = 255

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
