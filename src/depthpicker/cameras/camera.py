#!/usr/bin/env python

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

import abc
from typing import Any

from .configs import CameraConfig
from .frames import FrameFetch


class DepthCamera(abc.ABC):
    """Base class for depth camera sessions.

    One instance wraps one live connection to the device, including its running data
    stream. A session is opened with `connect()` and released with `disconnect()`; a new
    session is obtained by building a new instance, never by reconnecting a released one.

    Frame requests never raise for timeouts or device errors. Both are returned as a
    `FrameFetch` so callers can tell an expected timeout from a real fault.

    Attributes:
        fps (int | None): Configured frames per second
        width (int | None): Frame width in pixels
        height (int | None): Frame height in pixels

    Example:
        class MyDepthCamera(DepthCamera):
            def __init__(self, config): ...
            @property
            def is_connected(self) -> bool: ...
            def connect(self): ...
            def try_wait_for_frames(self, timeout_ms): ...
            # Plus other required methods
    """

    def __init__(self, config: CameraConfig):
        """Initialize the camera with the given configuration.

        Args:
            config: Camera configuration containing FPS and resolution.
        """
        self.fps: int | None = config.fps
        self.width: int | None = config.width
        self.height: int | None = config.height

    def __str__(self) -> str:
        return f"{self.__class__.__name__}()"

    @property
    @abc.abstractmethod
    def is_connected(self) -> bool:
        """Check if the session is open and its stream is running.

        Returns:
            bool: True if the camera is connected and ready to deliver frames,
                  False otherwise.
        """
        pass

    @property
    @abc.abstractmethod
    def depth_scale(self) -> float:
        """Meters per raw depth unit reported by the device."""
        pass

    @staticmethod
    @abc.abstractmethod
    def find_cameras() -> list[dict[str, Any]]:
        """Detects available cameras connected to the system.
        Returns:
            List[Dict[str, Any]]: A list of dictionaries,
            where each dictionary contains information about a detected camera.
        """
        pass

    @abc.abstractmethod
    def connect(self) -> None:
        """Open the session and start its depth stream.

        Raises:
            DeviceAlreadyConnectedError: If the session is already open.
            ConnectionError: If the device cannot be opened.
        """
        pass

    @abc.abstractmethod
    def try_wait_for_frames(self, timeout_ms: float) -> FrameFetch:
        """Block until a frame set arrives or `timeout_ms` elapses.

        Args:
            timeout_ms: Maximum time to wait for a frame set in milliseconds.

        Returns:
            FrameFetch: Success with the frame set, a timeout, or a fault carrying the
                device error.

        Raises:
            DeviceNotConnectedError: If the session is not open.
        """
        pass

    @abc.abstractmethod
    def disconnect(self) -> None:
        """Stop the stream and release the session and any frame it still holds."""
        pass
