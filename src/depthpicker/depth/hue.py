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
Hue-angle color mapping for depth visualization.

Pure functions mapping a value in [0, 1] to a fully saturated color, sweeping the hue
wheel from red (0°) to violet (300°). The last 60° back to red are left out so that the
nearest and farthest values never share a color.

Arithmetic is done in single precision. The scalar functions are evaluated through the
array ones, so a pixel colorized in bulk is byte-identical to `hue_map` of its value.
"""

import numpy as np

HUE_RANGE_DEGREES = np.float32(300.0)

# Source of each (R, G, B) channel per 60° sextant: 0 -> 0.0, 1 -> 1.0, 2 -> the ramp value x.
_SEXTANT_CHANNELS = np.array(
    [
        [1, 2, 0],  # red -> yellow
        [2, 1, 0],  # yellow -> green
        [0, 1, 2],  # green -> cyan
        [0, 2, 1],  # cyan -> blue
        [2, 0, 1],  # blue -> magenta
        [1, 0, 2],  # magenta -> red
    ],
    dtype=np.intp,
)


def hsv_to_rgb_array(h_degrees: np.ndarray) -> np.ndarray:
    """Converts hue angles to RGB with saturation and value fixed to 1.

    Args:
        h_degrees: Hue angles in degrees, any shape. Wrapped into [0, 360).

    Returns:
        np.ndarray: `uint8` array of shape `h_degrees.shape + (3,)`. Channels are scaled
            to [0, 255] and truncated toward zero.
    """
    h = np.fmod(np.asarray(h_degrees, dtype=np.float32), np.float32(360.0))
    h = np.where(h < 0, h + np.float32(360.0), h)

    h_prime = h / np.float32(60.0)
    x = np.float32(1.0) - np.abs(np.fmod(h_prime, np.float32(2.0)) - np.float32(1.0))
    sextant = np.clip(np.floor(h_prime), 0, 5).astype(np.intp)

    choices = np.stack([np.zeros_like(x), np.ones_like(x), x], axis=-1)
    rgb = np.take_along_axis(choices, _SEXTANT_CHANNELS[sextant], axis=-1)
    return (rgb.astype(np.float64) * 255.0).astype(np.uint8)


def hue_map_array(values: np.ndarray) -> np.ndarray:
    """Maps values to colors: clamp to [0, 1], scale to [0°, 300°], convert to RGB."""
    clamped = np.clip(np.asarray(values, dtype=np.float32), np.float32(0.0), np.float32(1.0))
    return hsv_to_rgb_array(clamped * HUE_RANGE_DEGREES)


def hsv_to_rgb(h_degrees: float) -> tuple[int, int, int]:
    r, g, b = hsv_to_rgb_array(np.float32(h_degrees))
    return int(r), int(g), int(b)


def hue_map(x: float) -> tuple[int, int, int]:
    """Color of a single value. `hue_map(0.0)` is red, `hue_map(1.0)` is violet (255, 0, 255)."""
    r, g, b = hue_map_array(np.float32(x))
    return int(r), int(g), int(b)
