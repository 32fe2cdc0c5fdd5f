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
Minimal render loop on top of OpenCV's HighGUI.

The engine owns a fixed-size BGR canvas that applications draw on, tracks the mouse
position over the window and reports which keys were pressed since the previous frame.
"""

import logging
import time
from enum import Enum

import cv2
import numpy as np

from depthpicker.depth.colorizer import ColorRaster

from .application import Application

logger = logging.getLogger(__name__)


class Key(str, Enum):
    UP = "up"
    DOWN = "down"
    PLUS = "plus"
    MINUS = "minus"
    ESCAPE = "escape"
    Q = "q"


# `cv2.waitKeyEx` codes. Arrow keys differ between HighGUI backends (GTK/Qt, Win32, Cocoa).
KEY_CODES: dict[int, Key] = {
    65362: Key.UP,
    2490368: Key.UP,
    63232: Key.UP,
    65364: Key.DOWN,
    2621440: Key.DOWN,
    63233: Key.DOWN,
    ord("+"): Key.PLUS,
    ord("="): Key.PLUS,
    ord("-"): Key.MINUS,
    27: Key.ESCAPE,
    ord("q"): Key.Q,
}

QUIT_KEYS = (Key.ESCAPE, Key.Q)


class WindowEngine:
    """Drives an `Application` in an OpenCV window of `width` x `height` pixels.

    Example:
        ```python
        engine = WindowEngine(848, 480, "RealSense Depth Viewer")
        engine.start(app)  # Blocks until the app stops, ESC/q is pressed or the window is closed
        ```
    """

    def __init__(self, width: int = 848, height: int = 480, title: str = "Depth Viewer"):
        if width <= 0 or height <= 0:
            raise ValueError(f"Invalid window size {width}x{height}.")
        self.width = width
        self.height = height
        self.title = title

        self.canvas = np.zeros((height, width, 3), dtype=np.uint8)
        self._mouse: tuple[int, int] | None = None
        self._pressed: set[Key] = set()

    @property
    def mouse_position(self) -> tuple[int, int] | None:
        """Last cursor position in canvas coordinates, or None if the cursor left the canvas."""
        return self._mouse

    def key_pressed(self, key: Key) -> bool:
        """True if `key` was pressed since the previous frame."""
        return key in self._pressed

    def clear(self, color: tuple[int, int, int] = (0, 0, 0)) -> None:
        self.canvas[:] = color[::-1]

    def draw_raster(self, raster: ColorRaster, x: int = 0, y: int = 0) -> None:
        """Blits an RGBA raster with its top-left corner at `(x, y)`, clipped to the canvas."""
        pixels = raster.view()
        x0, y0 = max(x, 0), max(y, 0)
        x1, y1 = min(x + raster.width, self.width), min(y + raster.height, self.height)
        if x0 >= x1 or y0 >= y1:
            return
        region = pixels[y0 - y : y1 - y, x0 - x : x1 - x]
        self.canvas[y0:y1, x0:x1] = cv2.cvtColor(np.ascontiguousarray(region), cv2.COLOR_RGBA2BGR)

    def draw_text(
        self,
        text: str,
        x: int,
        y: int,
        color: tuple[int, int, int] = (255, 255, 255),
        scale: float = 0.5,
    ) -> None:
        """Draws `text` with its first baseline at `(x, y)`. Newlines start new lines."""
        line_height = int(40 * scale)
        for i, line in enumerate(text.splitlines()):
            cv2.putText(
                self.canvas,
                line,
                (x, y + i * line_height),
                cv2.FONT_HERSHEY_SIMPLEX,
                scale,
                color[::-1],
                1,
                cv2.LINE_AA,
            )

    def _on_mouse(self, event, x, y, flags, param) -> None:
        if 0 <= x < self.width and 0 <= y < self.height:
            self._mouse = (x, y)
        else:
            self._mouse = None

    def _poll_keys(self) -> None:
        code = cv2.waitKeyEx(1)
        key = KEY_CODES.get(code)
        self._pressed = {key} if key is not None else set()

    def _window_closed(self) -> bool:
        return cv2.getWindowProperty(self.title, cv2.WND_PROP_VISIBLE) < 1

    def start(self, app: Application) -> None:
        """Runs the render loop until the application or the user ends it."""
        app.engine = self
        cv2.namedWindow(self.title, cv2.WINDOW_AUTOSIZE)
        cv2.setMouseCallback(self.title, self._on_mouse)

        frames = 0
        start_time = time.perf_counter()
        try:
            if not app.on_create():
                logger.info(f"{type(app).__name__} did not start.")
                return

            last_time = time.perf_counter()
            while True:
                now = time.perf_counter()
                elapsed, last_time = now - last_time, now

                if not app.on_update(elapsed):
                    break
                frames += 1

                cv2.imshow(self.title, self.canvas)
                self._poll_keys()
                if any(self.key_pressed(key) for key in QUIT_KEYS) or self._window_closed():
                    logger.info("Viewer closed by user.")
                    break
        finally:
            app.on_destroy()
            cv2.destroyWindow(self.title)
            duration_s = time.perf_counter() - start_time
            logger.info(f"Rendered {frames} frames in {duration_s:.1f}s ({frames / max(duration_s, 1e-6):.1f} fps).")
