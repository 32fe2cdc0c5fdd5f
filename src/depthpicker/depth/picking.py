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

"""Distance readout of the depth pixel under the cursor."""

from dataclasses import dataclass

from depthpicker.cameras.frames import DepthFrame

SCALING_STEP = 1.06


@dataclass
class ScalingFactor:
    """User-adjustable multiplier applied to picked distances."""

    value: float = 1.0
    step: float = SCALING_STEP

    def increase(self) -> float:
        self.value *= self.step
        return self.value

    def decrease(self) -> float:
        self.value /= self.step
        return self.value


@dataclass(frozen=True)
class PickedSample:
    x: int
    y: int
    # Scaled distance, in meters.
    distance: float
    scaling_factor: float

    def describe(self) -> str:
        return (
            f"x: {self.x} y: {self.y} = ({self.x}, {self.y}) - Distance: {self.distance:.4f} meters\n"
            f"scaling factor: {self.scaling_factor:.4f}"
        )


class CursorReadout:
    def __init__(self, scaling: ScalingFactor | None = None):
        self.scaling = scaling if scaling is not None else ScalingFactor()

    def read(self, frame: DepthFrame, cursor: tuple[int, int] | None) -> PickedSample | None:
        """Scaled distance at `cursor`, or None when the cursor is outside of the frame."""
        if cursor is None:
            return None
        x, y = cursor
        if not (0 <= x < frame.width and 0 <= y < frame.height):
            return None

        factor = self.scaling.value
        return PickedSample(x=x, y=y, distance=frame.distance_at(x, y) * factor, scaling_factor=factor)
