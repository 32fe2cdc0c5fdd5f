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

import logging

from depthpicker.cameras.acquisition import FrameAcquisitionManager
from depthpicker.depth.colorizer import DepthColorizer
from depthpicker.depth.picking import CursorReadout, PickedSample
from depthpicker.errors import AcquisitionError
from depthpicker.utils.utils import clear_console

from .application import Application
from .engine import Key

logger = logging.getLogger(__name__)

READOUT_SINKS = ("console", "log")


class DepthViewerApp(Application):
    """Shows colorized depth and the distance under the cursor, one camera frame per tick.

    Up/down arrows (or +/-) scale the reported distance by `ScalingFactor.step`. The app
    stops, with `failed` set, when no frame can be acquired even after session recovery.
    """

    def __init__(
        self,
        manager: FrameAcquisitionManager,
        colorizer: DepthColorizer,
        readout: CursorReadout | None = None,
        readout_sink: str = "console",
        overlay: bool = True,
    ):
        if readout_sink not in READOUT_SINKS:
            raise ValueError(f"`readout_sink` is expected to be one of {READOUT_SINKS}, got '{readout_sink}'.")

        self.manager = manager
        self.colorizer = colorizer
        self.readout = readout if readout is not None else CursorReadout()
        self.readout_sink = readout_sink
        self.overlay = overlay

        self.failed = False
        self.last_sample: PickedSample | None = None

    def on_create(self) -> bool:
        try:
            self.manager.start()
        except ConnectionError as e:
            logger.error(f"Could not open the depth camera: {e}")
            self.failed = True
            return False
        return True

    def on_update(self, elapsed_time: float) -> bool:
        try:
            frame = self.manager.acquire_frame()
        except AcquisitionError:
            self.failed = True
            return False

        raster = self.colorizer.colorize(frame)

        self.last_sample = self.readout.read(frame, self.engine.mouse_position)
        if self.last_sample is not None:
            self._report(self.last_sample)

        if self.engine.key_pressed(Key.UP) or self.engine.key_pressed(Key.PLUS):
            self.readout.scaling.increase()
        if self.engine.key_pressed(Key.DOWN) or self.engine.key_pressed(Key.MINUS):
            self.readout.scaling.decrease()

        self.engine.clear()
        self.engine.draw_raster(raster, 0, 0)
        if self.overlay and self.last_sample is not None:
            self.engine.draw_text(self.last_sample.describe(), 10, 20)
        return True

    def on_destroy(self) -> None:
        self.manager.close()

    def _report(self, sample: PickedSample) -> None:
        if self.readout_sink == "console":
            clear_console()
            print(sample.describe(), flush=True)
        else:
            logger.info(sample.describe().replace("\n", " | "))
