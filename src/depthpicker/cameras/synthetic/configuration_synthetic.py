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

from dataclasses import dataclass

from ..configs import CameraConfig


@CameraConfig.register_subclass("synthetic")
@dataclass
class SyntheticCameraConfig(CameraConfig):
    """Configuration for a hardware-free depth source producing a moving ramp.

    Useful to try the viewer without a camera plugged in:
    ```bash
    depthpicker-view --camera.type=synthetic --camera.bytes_per_pixel=4
    ```

    Attributes:
        fps: Frame rate the source is paced at. 0 delivers frames as fast as requested.
        width: Frame width in pixels.
        height: Frame height in pixels.
        bytes_per_pixel: 2 for 16-bit samples, 4 for 32-bit samples.
        depth_scale: Meters per raw depth unit.
        near_mm: Distance of the closest point of the ramp, in depth units.
        far_mm: Distance of the farthest point of the ramp, in depth units.
        step_per_frame: Horizontal shift of the ramp between two frames, in pixels.
    """

    fps: int | None = 30
    width: int | None = 848
    height: int | None = 480
    bytes_per_pixel: int = 2
    depth_scale: float = 0.001
    near_mm: int = 300
    far_mm: int = 13000
    step_per_frame: int = 4

    def __post_init__(self) -> None:
        self._validate_stream_settings()
        if self.width is None or self.height is None:
            raise ValueError("`width` and `height` are required for a synthetic camera.")
        if self.bytes_per_pixel not in (2, 4):
            raise ValueError(f"`bytes_per_pixel` is expected to be 2 or 4, but {self.bytes_per_pixel} is provided.")
        if not 0 <= self.near_mm < self.far_mm <= 0xFFFF:
            raise ValueError(
                f"Expected 0 <= near_mm < far_mm <= 65535, got near_mm={self.near_mm} and far_mm={self.far_mm}."
            )
