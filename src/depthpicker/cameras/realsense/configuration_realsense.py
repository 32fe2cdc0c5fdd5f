# Copyright 2024 The HuggingFace Inc. team. All rights reserved.
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


@CameraConfig.register_subclass("intelrealsense")
@dataclass
class RealSenseCameraConfig(CameraConfig):
    """Configuration class for Intel RealSense depth sessions.

    Example configurations for Intel RealSense D435:
    ```python
    RealSenseCameraConfig()  # First device found, default depth profile
    RealSenseCameraConfig("0123456789", fps=30, width=848, height=480)  # 848x480 @ 30FPS
    RealSenseCameraConfig("Intel RealSense D435")  # Unique device name
    ```

    Attributes:
        fps: Requested frames per second for the depth stream.
        width: Requested frame width in pixels for the depth stream.
        height: Requested frame height in pixels for the depth stream.
        serial_number_or_name: Serial number or human-readable name of the camera. When
            unset, the first device reported by the SDK is used.

    Note:
        - For `fps`, `width` and `height`, either all of them need to be set, or none of them.
        - The actual resolution and FPS may be adjusted by the camera to the nearest supported mode.
    """

    serial_number_or_name: str | None = None

    def __post_init__(self) -> None:
        self._validate_stream_settings()
