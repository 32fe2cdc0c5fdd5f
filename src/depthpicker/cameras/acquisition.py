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
Frame acquisition with bounded session recovery.

Depth cameras regularly miss a frame deadline (USB bus contention, exposure re-sync).
`FrameAcquisitionManager` hides those hiccups from the render loop: when the primary
frame request fails it throws the whole session away, opens a new one and tries again,
at most `max_retries` times, before giving up with the original failure.
"""

import logging
from dataclasses import dataclass
from typing import Callable

from depthpicker.errors import AcquisitionError

from .camera import DepthCamera
from .frames import DepthFrame, FrameFetch

logger = logging.getLogger(__name__)


@dataclass
class AcquisitionConfig:
    # Maximum time to block on one frame request, in milliseconds. Also used for every retry.
    timeout_ms: int = 5000
    # Number of teardown/reopen/request cycles attempted after a failed primary request.
    max_retries: int = 2

    def __post_init__(self) -> None:
        if self.timeout_ms <= 0:
            raise ValueError(f"`timeout_ms` must be positive, got {self.timeout_ms}.")
        if self.max_retries < 0:
            raise ValueError(f"`max_retries` must be non-negative, got {self.max_retries}.")


class FrameAcquisitionManager:
    """Owns the camera session and produces one depth frame per visualization tick.

    The session is created by `camera_factory`, which must return a new, disconnected
    `DepthCamera` on every call. No other object may keep a reference to the session.

    Example:
        ```python
        config = SyntheticCameraConfig()
        with FrameAcquisitionManager(lambda: make_camera_from_config(config)) as manager:
            frame = manager.acquire_frame()
        ```
    """

    def __init__(
        self,
        camera_factory: Callable[[], DepthCamera],
        config: AcquisitionConfig | None = None,
    ):
        self.camera_factory = camera_factory
        self.config = config if config is not None else AcquisitionConfig()

        self._session: DepthCamera | None = None
        self._frame: DepthFrame | None = None
        self.recoveries = 0

    def __str__(self) -> str:
        return f"{self.__class__.__name__}({self._session})"

    def __enter__(self) -> "FrameAcquisitionManager":
        self.start()
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    @property
    def has_session(self) -> bool:
        return self._session is not None

    @property
    def last_frame(self) -> DepthFrame | None:
        """The frame returned by the latest successful `acquire_frame`, dropped on recovery."""
        return self._frame

    def start(self) -> None:
        """Opens the first session if none is live.

        Raises:
            ConnectionError: If the device cannot be opened.
        """
        if self._session is None:
            self._open_session()

    def acquire_frame(self, timeout_ms: float | None = None) -> DepthFrame:
        """Returns the next depth frame, recovering the session when the request fails.

        Args:
            timeout_ms: Per-attempt timeout in milliseconds. Defaults to `config.timeout_ms`.

        Returns:
            DepthFrame: The depth component of the next frame set.

        Raises:
            AcquisitionError: If the primary request and every recovery attempt failed. The
                error carries the primary failure in `original`.
        """
        timeout_ms = self.config.timeout_ms if timeout_ms is None else timeout_ms

        original = self._request(timeout_ms)
        if original.ok:
            return self._hold(original)

        logger.warning(f"Frame request on {self._session} failed ({original.describe()}). Recovering session.")

        for attempt in range(1, self.config.max_retries + 1):
            self._teardown()
            fetch = self._request(timeout_ms)
            if fetch.ok:
                self.recoveries += 1
                logger.info(f"Session recovered on attempt {attempt}/{self.config.max_retries}.")
                return self._hold(fetch)
            logger.debug(f"Recovery attempt {attempt}/{self.config.max_retries} failed: {fetch.describe()}")

        self._teardown()
        message = (
            f"Unable to acquire a depth frame after {self.config.max_retries} recovery attempts: "
            f"{original.describe()}"
        )
        logger.error(message)
        raise AcquisitionError(message, original=original) from original.error

    def close(self) -> None:
        """Releases the live session, if any."""
        self._teardown()

    def _request(self, timeout_ms: float) -> FrameFetch:
        """One blocking frame request, opening a session first when none is live.

        Any error raised while building, opening or reading the session is returned as a
        fault, so it counts as one failed attempt.
        """
        try:
            if self._session is None:
                self._open_session()
            fetch = self._session.try_wait_for_frames(timeout_ms)
        except Exception as e:
            logger.debug(f"Frame request raised {e!r}")
            return FrameFetch.fault(e, timeout_ms=timeout_ms)

        if fetch.ok and fetch.frameset.get_depth_frame() is None:
            return FrameFetch.fault(
                RuntimeError(f"{self._session} delivered a frame set without a depth frame."),
                timeout_ms=timeout_ms,
            )
        return fetch

    def _hold(self, fetch: FrameFetch) -> DepthFrame:
        self._frame = fetch.frameset.get_depth_frame()
        return self._frame

    def _open_session(self) -> None:
        session = self.camera_factory()
        try:
            session.connect()
        except Exception:
            if session.is_connected:
                session.disconnect()
            raise
        self._session = session

    def _teardown(self) -> None:
        """Stops the stream and drops the session and every frame it produced."""
        session, self._session = self._session, None
        self._frame = None
        if session is None or not session.is_connected:
            return
        try:
            session.disconnect()
        except Exception as e:
            logger.warning(f"Error while releasing {session}: {e}")