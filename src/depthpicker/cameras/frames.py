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
SDK-independent frame containers shared by every depth camera backend.

A `DepthFrame` keeps the raw byte layout reported by the device (bytes per sample and
row stride) so the colorizer reads exactly what the camera produced. A blocking frame
request returns a `FrameFetch` instead of raising: timeouts are a normal outcome while
streaming, device faults carry the error and the failing call for later reporting.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

import numpy as np

SAMPLE_DTYPES: dict[int, type[np.unsignedinteger]] = {
    2: np.uint16,
    4: np.uint32,
}


@dataclass(frozen=True, eq=False)
class DepthFrame:
    """One depth image as a raw, strided byte buffer.

    Attributes:
        width: Frame width in pixels.
        height: Frame height in pixels.
        bytes_per_pixel: Size of one raw sample (2 for z16, 4 for 32-bit modes).
        stride_in_bytes: Distance in bytes between the starts of two consecutive rows.
            May be larger than `width * bytes_per_pixel` when rows are padded.
        data: Contiguous 1-D `uint8` buffer holding at least `height * stride_in_bytes` bytes.
        depth_scale: Meters per raw depth unit, used when no SDK distance function is available.
        distance_fn: Optional SDK callable `(x, y) -> meters` (e.g. `rs.depth_frame.get_distance`).
        handle: Optional SDK frame object kept alive while `data` points into its memory.
    """

    width: int
    height: int
    bytes_per_pixel: int
    stride_in_bytes: int
    data: np.ndarray
    depth_scale: float = 0.001
    distance_fn: Callable[[int, int], float] | None = field(default=None, repr=False, compare=False)
    handle: Any = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Invalid frame size {self.width}x{self.height}.")
        if self.stride_in_bytes < self.width * self.bytes_per_pixel:
            raise ValueError(
                f"Row stride of {self.stride_in_bytes} bytes is smaller than a row of "
                f"{self.width} samples of {self.bytes_per_pixel} bytes."
            )
        if self.data.dtype != np.uint8 or self.data.ndim != 1 or not self.data.flags.c_contiguous:
            raise ValueError("`data` must be a contiguous 1-D uint8 buffer.")
        if self.data.size < self.height * self.stride_in_bytes:
            raise ValueError(
                f"Buffer of {self.data.size} bytes is too small for {self.height} rows of "
                f"{self.stride_in_bytes} bytes."
            )

    @classmethod
    def from_array(cls, depth: np.ndarray, depth_scale: float = 0.001) -> "DepthFrame":
        """Builds an unpadded frame from a 2-D `uint16` or `uint32` array of raw samples."""
        if depth.ndim != 2:
            raise ValueError(f"Expected a 2-D depth array, got shape {depth.shape}.")
        if depth.dtype not in (np.uint16, np.uint32):
            raise ValueError(f"Expected uint16 or uint32 depth samples, got {depth.dtype}.")

        depth = np.ascontiguousarray(depth)
        height, width = depth.shape
        return cls(
            width=width,
            height=height,
            bytes_per_pixel=depth.itemsize,
            stride_in_bytes=width * depth.itemsize,
            data=depth.view(np.uint8).reshape(-1),
            depth_scale=depth_scale,
        )

    @property
    def shape(self) -> tuple[int, int]:
        return self.height, self.width

    def samples(self) -> np.ndarray:
        """Returns a read-only `(height, width)` view of the raw samples, skipping row padding.

        Raises:
            ValueError: If `bytes_per_pixel` is not a supported sample size.
        """
        dtype = SAMPLE_DTYPES.get(self.bytes_per_pixel)
        if dtype is None:
            raise ValueError(
                f"Unsupported depth sample size of {self.bytes_per_pixel} bytes. "
                f"Expected one of {sorted(SAMPLE_DTYPES)}."
            )
        view = np.ndarray(
            shape=(self.height, self.width),
            dtype=dtype,
            buffer=self.data,
            strides=(self.stride_in_bytes, self.bytes_per_pixel),
        )
        view.flags.writeable = False
        return view

    def row(self, y: int) -> np.ndarray:
        return self.samples()[y]

    def distance_at(self, x: int, y: int) -> float:
        """Metric distance in meters of the sample at pixel `(x, y)`."""
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) is outside of the {self.width}x{self.height} frame.")
        if self.distance_fn is not None:
            return float(self.distance_fn(x, y))
        return float(self.samples()[y, x]) * self.depth_scale


@dataclass(frozen=True)
class FrameSet:
    """A bundle of synchronized frames. Only the depth component is used."""

    depth: DepthFrame | None
    frame_number: int = 0
    timestamp_ms: float = 0.0

    def get_depth_frame(self) -> DepthFrame | None:
        return self.depth


class FetchStatus(str, Enum):
    SUCCESS = "success"
    TIMEOUT = "timeout"
    FAULT = "fault"


@dataclass(frozen=True)
class FrameFetch:
    """Outcome of one blocking frame request.

    Attributes:
        status: Whether frames arrived, the wait timed out or the device faulted.
        frameset: The frames, only set on success.
        error: The device error, only set on fault.
        timeout_ms: The timeout the request waited for.
        failed_function: Name of the SDK call that failed, when the SDK reports it.
        failed_args: Arguments of the SDK call that failed, when the SDK reports them.
    """

    status: FetchStatus
    frameset: FrameSet | None = None
    error: BaseException | None = None
    timeout_ms: float | None = None
    failed_function: str | None = None
    failed_args: str | None = None

    @classmethod
    def success(cls, frameset: FrameSet, timeout_ms: float | None = None) -> "FrameFetch":
        return cls(FetchStatus.SUCCESS, frameset=frameset, timeout_ms=timeout_ms)

    @classmethod
    def timeout(cls, timeout_ms: float) -> "FrameFetch":
        return cls(FetchStatus.TIMEOUT, timeout_ms=timeout_ms)

    @classmethod
    def fault(
        cls,
        error: BaseException,
        timeout_ms: float | None = None,
        failed_function: str | None = None,
        failed_args: str | None = None,
    ) -> "FrameFetch":
        return cls(
            FetchStatus.FAULT,
            error=error,
            timeout_ms=timeout_ms,
            failed_function=failed_function,
            failed_args=failed_args,
        )

    @property
    def ok(self) -> bool:
        return self.status is FetchStatus.SUCCESS

    def describe(self) -> str:
        if self.status is FetchStatus.SUCCESS:
            return "frames received"
        if self.status is FetchStatus.TIMEOUT:
            return f"no frames arrived within {self.timeout_ms} ms"
        if self.failed_function is not None:
            return f"error calling {self.failed_function}({self.failed_args or ''}): {self.error}"
        return f"device error: {self.error!r}"
