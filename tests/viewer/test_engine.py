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

# Example of running a specific test:
# ```bash
# pytest tests/viewer/test_engine.py::test_quit_keys
# ```

from unittest.mock import DEFAULT, patch

import cv2
import numpy as np
import pytest

from depthpicker.depth.colorizer import ColorRaster
from depthpicker.viewer import Application, Key, WindowEngine


class RecordingApp(Application):
    def __init__(self, ticks: int = 3, create: bool = True):
        self.ticks = ticks
        self.create = create
        self.updates = 0
        self.pressed: list[set[Key]] = []
        self.destroyed = False

    def on_create(self) -> bool:
        return self.create

    def on_update(self, elapsed_time: float) -> bool:
        assert elapsed_time >= 0
        self.pressed.append({key for key in Key if self.engine.key_pressed(key)})
        self.updates += 1
        return self.updates < self.ticks

    def on_destroy(self) -> None:
        self.destroyed = True


@pytest.fixture(name="highgui")
def fixture_highgui():
    """Replaces the HighGUI calls so the loop runs without a display."""
    with patch.multiple(
        "depthpicker.viewer.engine.cv2",
        namedWindow=DEFAULT,
        setMouseCallback=DEFAULT,
        imshow=DEFAULT,
        waitKeyEx=DEFAULT,
        getWindowProperty=DEFAULT,
        destroyWindow=DEFAULT,
    ) as mocks:
        mocks["waitKeyEx"].return_value = -1
        mocks["getWindowProperty"].return_value = 1.0
        yield mocks


def test_runs_until_app_stops(highgui):
    engine = WindowEngine(64, 48, "test")
    app = RecordingApp(ticks=3)

    engine.start(app)

    assert app.engine is engine
    assert app.updates == 3
    assert app.destroyed
    assert highgui["imshow"].call_count == 2
    highgui["namedWindow"].assert_called_once()
    highgui["destroyWindow"].assert_called_once_with("test")


def test_app_that_fails_to_start(highgui):
    engine = WindowEngine(64, 48, "test")
    app = RecordingApp(create=False)

    engine.start(app)

    assert app.updates == 0
    assert app.destroyed
    highgui["destroyWindow"].assert_called_once_with("test")


@pytest.mark.parametrize("code", [27, ord("q")])
def test_quit_keys(highgui, code):
    highgui["waitKeyEx"].return_value = code
    app = RecordingApp(ticks=100)

    WindowEngine(64, 48, "test").start(app)

    assert app.updates == 1
    assert app.destroyed


def test_window_closed(highgui):
    highgui["getWindowProperty"].return_value = 0.0
    app = RecordingApp(ticks=100)

    WindowEngine(64, 48, "test").start(app)

    assert app.updates == 1


@pytest.mark.parametrize(
    "code, key",
    [
        (65362, Key.UP),
        (2490368, Key.UP),
        (65364, Key.DOWN),
        (2621440, Key.DOWN),
        (ord("+"), Key.PLUS),
        (ord("="), Key.PLUS),
        (ord("-"), Key.MINUS),
    ],
)
def test_keys_are_reported_for_one_frame(highgui, code, key):
    highgui["waitKeyEx"].side_effect = [code, -1, -1]
    app = RecordingApp(ticks=3)

    WindowEngine(64, 48, "test").start(app)

    assert app.pressed == [set(), {key}, set()]


def test_app_errors_still_close_the_window(highgui):
    class FailingApp(RecordingApp):
        def on_update(self, elapsed_time):
            raise RuntimeError("boom")

    app = FailingApp()
    with pytest.raises(RuntimeError):
        WindowEngine(64, 48, "test").start(app)

    assert app.destroyed
    highgui["destroyWindow"].assert_called_once()


def test_mouse_position():
    engine = WindowEngine(64, 48, "test")
    assert engine.mouse_position is None

    engine._on_mouse(cv2.EVENT_MOUSEMOVE, 10, 20, 0, None)
    assert engine.mouse_position == (10, 20)

    engine._on_mouse(cv2.EVENT_MOUSEMOVE, 64, 20, 0, None)
    assert engine.mouse_position is None


def test_draw_raster_converts_to_bgr():
    engine = WindowEngine(4, 3, "test")
    raster = ColorRaster(2, 2)
    raster.pixels[:] = (10, 20, 30, 255)

    engine.draw_raster(raster, 1, 1)

    np.testing.assert_array_equal(engine.canvas[1:3, 1:3], np.full((2, 2, 3), (30, 20, 10)))
    assert not engine.canvas[0].any()
    assert not engine.canvas[:, 0].any()


def test_draw_raster_is_clipped():
    engine = WindowEngine(4, 3, "test")
    raster = ColorRaster(6, 5)
    raster.pixels[..., 0] = np.arange(6, dtype=np.uint8)

    engine.draw_raster(raster, -1, 0)

    np.testing.assert_array_equal(engine.canvas[0, :, 2], [1, 2, 3, 4])

    engine.clear()
    engine.draw_raster(raster, 10, 10)
    assert not engine.canvas.any()


def test_clear_uses_rgb_color():
    engine = WindowEngine(2, 2, "test")
    engine.clear((1, 2, 3))
    np.testing.assert_array_equal(engine.canvas[0, 0], (3, 2, 1))


def test_draw_text():
    engine = WindowEngine(200, 100, "test")
    engine.draw_text("x: 1 y: 2\nscaling factor: 1.0000", 10, 20)
    assert engine.canvas.any()


def test_invalid_size():
    with pytest.raises(ValueError):
        WindowEngine(0, 480)
