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

"""
Provides the RealSenseCamera class for streaming depth frames from Intel RealSense cameras.
"""

import logging
import time
from typing import Any

import numpy as np

try:
    import pyrealsense2 as rs
except Exception as e:
    logging.info(f"Could not import realsense: {e}")

from depthpicker.errors import DeviceAlreadyConnectedError, DeviceNotConnectedError

from ..camera import DepthCamera
from ..frames import DepthFrame, FrameFetch, FrameSet
from .configuration_realsense import RealSenseCameraConfig

logger = logging.getLogger(__name__)


class RealSenseCamera(DepthCamera):
    """
    One depth streaming session on an Intel RealSense camera, backed by `pyrealsense2`.

    The session owns an `rs.pipeline` started with a z16 depth stream. Frame sets are
    requested with `try_wait_for_frames`, which reports timeouts and device errors as
    `FrameFetch` values instead of raising, and the SDK depth frame is exposed as a
    `DepthFrame` that keeps the raw bytes, the row stride and `get_distance`.

    Use the provided utility script to find connected cameras:
    ```bash
    depthpicker-find-cameras
    ```

    Example:
        ```python
        from depthpicker.cameras.realsense import RealSenseCamera, RealSenseCameraConfig

        camera = RealSenseCamera(RealSenseCameraConfig())
        camera.connect()

        fetch = camera.try_wait_for_frames(timeout_ms=5000)
        if fetch.ok:
            depth = fetch.frameset.get_depth_frame()
            print(depth.width, depth.height, depth.distance_at(10, 10))

        camera.disconnect()
        ```
    """

    def __init__(self, config: RealSenseCameraConfig):
        """
        Initializes the RealSenseCamera instance.

        Args:
            config: The configuration settings for the camera.
        """

        super().__init__(config)

        self.config = config

        if config.serial_number_or_name is None or config.serial_number_or_name.isdigit():
            self.serial_number = config.serial_number_or_name
        else:
            self.serial_number = self._find_serial_number_from_name(config.serial_number_or_name)

        self.rs_pipeline: rs.pipeline | None = None
        self.rs_profile: rs.pipeline_profile | None = None
        self._depth_scale: float | None = None

    def __str__(self) -> str:
        return f"{self.__class__.__name__}({self.serial_number or 'any'})"

    @property
    def is_connected(self) -> bool:
        """Checks if the camera pipeline is started and streams are active."""
        return self.rs_pipeline is not None and self.rs_profile is not None

    @property
    def depth_scale(self) -> float:
        if self._depth_scale is None:
            raise DeviceNotConnectedError(f"Depth scale of {self} is unknown until it is connected.")
        return self._depth_scale

    def connect(self) -> None:
        """
        Starts a RealSense pipeline with a depth stream for the configured device.

        Raises:
            DeviceAlreadyConnectedError: If the camera is already connected.
            ConnectionError: If the pipeline fails to start (no device, device busy, invalid profile).
        """
        if self.is_connected:
            raise DeviceAlreadyConnectedError(f"{self} is already connected.")

        self.rs_pipeline = rs.pipeline()
        rs_config = rs.config()
        self._configure_rs_pipeline_config(rs_config)

        try:
            self.rs_profile = self.rs_pipeline.start(rs_config)
        except RuntimeError as e:
            self.rs_profile = None
            self.rs_pipeline = None
            raise ConnectionError(
                f"Failed to open {self}. Run `depthpicker-find-cameras` to find available cameras."
            ) from e

        try:
            self._configure_capture_settings()
        except RuntimeError as e:
            pipeline = self.rs_pipeline
            self.rs_profile = None
            self.rs_pipeline = None
            self._depth_scale = None
            pipeline.stop()
            raise ConnectionError(f"Failed to read the depth stream settings of {self}.") from e

        logger.info(f"{self} connected (depth scale {self._depth_scale} m/unit).")

    @staticmethod
    def find_cameras() -> list[dict[str, Any]]:
        """
        Detects available Intel RealSense cameras connected to the system.

        Returns:
            List[Dict[str, Any]]: A list of dictionaries,
            where each dictionary contains 'type', 'id' (serial number), 'name',
            firmware version, USB type, and the default depth profile properties (width, height, fps, format).
        """
        found_cameras_info = []
        context = rs.context()
        devices = context.query_devices()

        for device in devices:
            camera_info = {
                "name": device.get_info(rs.camera_info.name),
                "type": "RealSense",
                "id": device.get_info(rs.camera_info.serial_number),
                "firmware_version": device.get_info(rs.camera_info.firmware_version),
                "usb_type_descriptor": device.get_info(rs.camera_info.usb_type_descriptor),
                "physical_port": device.get_info(rs.camera_info.physical_port),
                "product_id": device.get_info(rs.camera_info.product_id),
                "product_line": device.get_info(rs.camera_info.product_line),
            }

            for sensor in device.query_sensors():
                for profile in sensor.get_stream_profiles():
                    if (
                        profile.is_video_stream_profile()
                        and profile.is_default()
                        and profile.stream_type() == rs.stream.depth
                    ):
                        vprofile = profile.as_video_stream_profile()
                        camera_info["default_stream_profile"] = {
                            "stream_type": vprofile.stream_name(),
                            "format": vprofile.format().name,
                            "width": vprofile.width(),
                            "height": vprofile.height(),
                            "fps": vprofile.fps(),
                        }

            found_cameras_info.append(camera_info)

        return found_cameras_info

    def _find_serial_number_from_name(self, name: str) -> str:
        """Finds the serial number for a given unique camera name."""
        camera_infos = self.find_cameras()
        found_devices = [cam for cam in camera_infos if str(cam["name"]) == name]

        if not found_devices:
            available_names = [cam["name"] for cam in camera_infos]
            raise ValueError(
                f"No RealSense camera found with name '{name}'. Available camera names: {available_names}"
            )

        if len(found_devices) > 1:
            serial_numbers = [dev["id"] for dev in found_devices]
            raise ValueError(
                f"Multiple RealSense cameras found with name '{name}'. "
                f"Please use a unique serial number instead. Found SNs: {serial_numbers}"
            )

        return str(found_devices[0]["id"])

    def _configure_rs_pipeline_config(self, rs_config) -> None:
        """Enables the configured device and its depth stream on the pipeline configuration."""
        if self.serial_number is not None:
            rs_config.enable_device(self.serial_number)

        if self.width and self.height and self.fps:
            rs_config.enable_stream(rs.stream.depth, self.width, self.height, rs.format.z16, self.fps)
        else:
            rs_config.enable_stream(rs.stream.depth)

    def _configure_capture_settings(self) -> None:
        """Reads the depth scale and the actual stream settings from the started pipeline."""
        if not self.is_connected:
            raise DeviceNotConnectedError(f"Cannot validate settings for {self} as it is not connected.")

        self._depth_scale = float(self.rs_profile.get_device().first_depth_sensor().get_depth_scale())

        stream = self.rs_profile.get_stream(rs.stream.depth).as_video_stream_profile()
        if self.fps is None:
            self.fps = stream.fps()
        if self.width is None or self.height is None:
            self.width, self.height = int(stream.width()), int(stream.height())

    def try_wait_for_frames(self, timeout_ms: float) -> FrameFetch:
        """
        Waits for a coherent frame set from the pipeline.

        Returns:
            FrameFetch: Success with the depth frame, a timeout when nothing arrived within
                `timeout_ms`, or a fault carrying the `rs.error` and the failing SDK call.

        Raises:
            DeviceNotConnectedError: If the camera is not connected.
        """
        if not self.is_connected:
            raise DeviceNotConnectedError(f"{self} is not connected.")

        start_time = time.perf_counter()

        try:
            ret, frames = self.rs_pipeline.try_wait_for_frames(timeout_ms=int(timeout_ms))
        except RuntimeError as e:
            return FrameFetch.fault(
                e,
                timeout_ms=timeout_ms,
                failed_function=_call_or_none(e, "get_failed_function"),
                failed_args=_call_or_none(e, "get_failed_args"),
            )

        if not ret or frames is None:
            return FrameFetch.timeout(timeout_ms)

        rs_depth = frames.get_depth_frame()
        depth = self._to_depth_frame(rs_depth) if rs_depth else None
        frameset = FrameSet(
            depth=depth,
            frame_number=int(frames.get_frame_number()),
            timestamp_ms=float(frames.get_timestamp()),
        )

        read_duration_ms = (time.perf_counter() - start_time) * 1e3
        logger.debug(f"{self} wait_for_frames took: {read_duration_ms:.1f}ms")

        return FrameFetch.success(frameset, timeout_ms=timeout_ms)

    def _to_depth_frame(self, rs_depth) -> DepthFrame:
        return DepthFrame(
            width=int(rs_depth.get_width()),
            height=int(rs_depth.get_height()),
            bytes_per_pixel=int(rs_depth.get_bytes_per_pixel()),
            stride_in_bytes=int(rs_depth.get_stride_in_bytes()),
            data=np.frombuffer(rs_depth.get_data(), dtype=np.uint8),
            depth_scale=self.depth_scale,
            distance_fn=rs_depth.get_distance,
            handle=rs_depth,
        )

    def disconnect(self) -> None:
        """
        Stops the RealSense pipeline and releases the session.

        The pipeline handle is dropped even if stopping it fails, so a new session can be
        opened afterwards.

        Raises:
            DeviceNotConnectedError: If the camera is already disconnected (pipeline not running).
        """
        if not self.is_connected:
            raise DeviceNotConnectedError(
                f"Attempted to disconnect {self}, but it appears already disconnected."
            )

        pipeline = self.rs_pipeline
        self.rs_pipeline = None
        self.rs_profile = None
        pipeline.stop()

        logger.info(f"{self} disconnected.")


def _call_or_none(error: BaseException, method: str) -> str | None:
    getter = getattr(error, method, None)
    return str(getter()) if callable(getter) else None
