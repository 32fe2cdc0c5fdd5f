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
Provides the SyntheticCamera class, a deterministic depth source that needs no hardware.
"""

import logging
import time
from typing import Any

import numpy as np

from depthpicker.errors import DeviceAlreadyConnectedError, DeviceNotConnectedError

from ..camera import DepthCamera
from ..frames import DepthFrame, FrameFetch, FrameSet
from .configuration_synthetic import SyntheticCameraConfig

logger = logging.getLogger(__name__)


class SyntheticCamera(DepthCamera):
    """Produces a horizontal depth ramp that scrolls by `step_per_frame` pixels per frame.

    Frame `n` is a pure function of the configuration and `n`, so two sessions built from
    the same configuration deliver identical frames. 32-bit frames carry the ramp in their
    high 16 bits.
    """

    def __init__(self, config: SyntheticCameraConfig):
        super().__init__(config)
        self.config = config
        self.bytes_per_pixel = config.bytes_per_pixel

        self._connected = False
        self._frame_number = 0
        self._next_frame_time: float | None = None

    def __str__(self) -> str:
        return f"{self.__class__.__name__}({self.width}x{self.height}@{self.fps})"

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def depth_scale(self) -> float:
        return self.config.depth_scale

    @staticmethod
    def find_cameras() -> list[dict[str, Any]]:
        return [{"name": "Synthetic depth ramp", "type": "Synthetic", "id": "synthetic"}]

    def connect(self) -> None:
        if self.is_connected:
            raise DeviceAlreadyConnectedError(f"{self} is already connected.")

        self._connected = True
        self._frame_number = 0
        self._next_frame_time = time.perf_counter()
        logger.info(f"{self} connected.")

    def render(self, frame_number: int) -> np.ndarray:
        """Raw samples of frame `frame_number`, as `uint16` or `uint32` depending on the sample size."""
        cfg = self.config
        columns = (np.arange(self.width) + frame_number * cfg.step_per_frame) % self.width
        ramp = cfg.near_mm + (columns * (cfg.far_mm - cfg.near_mm)) // max(self.width - 1, 1)
        depth = np.broadcast_to(ramp.astype(np.uint16), (self.height, self.width))
        if self.bytes_per_pixel == 4:
            return depth.astype(np.uint32) << 16
        return depth.copy()

    def try_wait_for_frames(self, timeout_ms: float) -> FrameFetch:
        if not self.is_connected:
            raise DeviceNotConnectedError(f"{self} is not connected.")

        if self.fps:
            wait_s = self._next_frame_time - time.perf_counter()
            if wait_s * 1e3 > timeout_ms:
                time.sleep(timeout_ms / 1e3)
                return FrameFetch.timeout(timeout_ms)
            if wait_s > 0:
                time.sleep(wait_s)
            self._next_frame_time = max(self._next_frame_time, time.perf_counter()) + 1.0 / self.fps

        frame_number = self._frame_number
        self._frame_number += 1

        # 32-bit samples carry the distance in their high 16 bits.
        scale = self.depth_scale / 65536 if self.bytes_per_pixel == 4 else self.depth_scale
        depth = DepthFrame.from_array(self.render(frame_number), depth_scale=scale)

        frameset = FrameSet(depth=depth, frame_number=frame_number, timestamp_ms=time.time() * 1e3)
        return FrameFetch.success(frameset, timeout_ms=timeout_ms)

    def disconnect(self) -> None:
        if not self.is_connected:
            raise DeviceNotConnectedError(
                f"Attempted to disconnect {self}, but it appears already disconnected."
            )

        self._connected = False
        self._next_frame_time = None
        logger.info(f"{self} disconnected.")
