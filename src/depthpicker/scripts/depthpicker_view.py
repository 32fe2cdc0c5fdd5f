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
Shows the depth stream of a camera and prints the distance under the mouse cursor.

Up/down arrows (or +/-) scale the reported distance, ESC or q quits.

Examples:

```shell
depthpicker-view
```

Shorter frame timeout and restart the viewer whenever the camera cannot be recovered:
```shell
depthpicker-view \
    --camera.type=intelrealsense \
    --camera.serial_number_or_name=0123456789 \
    --acquisition.timeout_ms=1000 \
    --restart.restart_on_failure=true
```

Without a camera:
```shell
depthpicker-view --camera.type=synthetic --camera.bytes_per_pixel=4
```
"""

import logging
import time
from dataclasses import asdict, dataclass, field
from pathlib import Path
from pprint import pformat

import draccus

from depthpicker.cameras import CameraConfig, make_camera_from_config
from depthpicker.cameras.acquisition import AcquisitionConfig, FrameAcquisitionManager
from depthpicker.cameras.realsense.configuration_realsense import RealSenseCameraConfig
from depthpicker.cameras.synthetic.configuration_synthetic import SyntheticCameraConfig  # noqa: F401
from depthpicker.depth.colorizer import ColorizerConfig, DepthColorizer
from depthpicker.depth.picking import CursorReadout
from depthpicker.utils.utils import get_elapsed_time_in_days_hours_minutes_seconds, init_logging
from depthpicker.viewer.depth_viewer import READOUT_SINKS, DepthViewerApp
from depthpicker.viewer.engine import WindowEngine

EXIT_SUCCESS = 0
EXIT_FAILURE = 1


@dataclass
class RestartPolicy:
    # Start a fresh viewer (new camera session) after an unrecoverable acquisition failure.
    restart_on_failure: bool = False
    # Maximum number of restarts. None restarts forever.
    max_restarts: int | None = None
    # Pause before restarting, in seconds.
    restart_delay_s: float = 1.0


@dataclass
class ViewerConfig:
    camera: CameraConfig = field(default_factory=RealSenseCameraConfig)
    acquisition: AcquisitionConfig = field(default_factory=AcquisitionConfig)
    colorizer: ColorizerConfig = field(default_factory=ColorizerConfig)
    restart: RestartPolicy = field(default_factory=RestartPolicy)
    window_width: int = 848
    window_height: int = 480
    title: str = "RealSense Depth Viewer"
    # Where the picked distance is reported: "console" (cleared every frame) or "log".
    readout: str = "console"
    # Draw the picked distance on top of the depth image.
    overlay: bool = True
    log_file: Path | None = None

    def __post_init__(self):
        if self.readout not in READOUT_SINKS:
            raise ValueError(f"`readout` is expected to be one of {READOUT_SINKS}, got '{self.readout}'.")


def run_viewer(cfg: ViewerConfig, engine: WindowEngine | None = None) -> int:
    """Runs one viewer session on a fresh camera session.

    Returns:
        int: `EXIT_SUCCESS` when the user closed the viewer, `EXIT_FAILURE` when the
            camera could not be opened or recovered.
    """
    manager = FrameAcquisitionManager(lambda: make_camera_from_config(cfg.camera), cfg.acquisition)
    if engine is None:
        engine = WindowEngine(cfg.window_width, cfg.window_height, cfg.title)

    with DepthColorizer(cfg.colorizer) as colorizer:
        app = DepthViewerApp(
            manager,
            colorizer,
            CursorReadout(),
            readout_sink=cfg.readout,
            overlay=cfg.overlay,
        )
        try:
            engine.start(app)
        finally:
            manager.close()

    if manager.recoveries:
        logging.info(f"Camera session was recovered {manager.recoveries} time(s).")
    return EXIT_FAILURE if app.failed else EXIT_SUCCESS


def view_with_restarts(cfg: ViewerConfig, runner=run_viewer) -> int:
    """Applies the restart policy around `runner` and maps unexpected errors to a failure status."""
    start_time = time.perf_counter()
    restarts = 0
    while True:
        try:
            status = runner(cfg)
        except Exception:
            logging.exception("Depth viewer stopped on an unexpected error.")
            return EXIT_FAILURE

        if status == EXIT_SUCCESS or not cfg.restart.restart_on_failure:
            break
        if cfg.restart.max_restarts is not None and restarts >= cfg.restart.max_restarts:
            logging.error(f"Giving up after {restarts} restart(s).")
            break

        restarts += 1
        logging.warning(f"Restarting depth viewer ({restarts}) in {cfg.restart.restart_delay_s}s.")
        time.sleep(cfg.restart.restart_delay_s)

    days, hours, minutes, seconds = get_elapsed_time_in_days_hours_minutes_seconds(time.perf_counter() - start_time)
    logging.info(f"Depth viewer ran for {days}d {hours}h {minutes}m {seconds:.0f}s with {restarts} restart(s).")
    return status


@draccus.wrap()
def view(cfg: ViewerConfig) -> int:
    init_logging(log_file=cfg.log_file)
    logging.info(pformat(asdict(cfg)))
    return view_with_restarts(cfg)


def main():
    raise SystemExit(view())


if __name__ == "__main__":
    main()
