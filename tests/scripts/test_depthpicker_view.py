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
# pytest tests/scripts/test_depthpicker_view.py::test_restart_until_success
# ```

from unittest.mock import MagicMock, patch

import draccus
import pytest

from depthpicker.cameras.realsense import RealSenseCameraConfig
from depthpicker.cameras.synthetic import SyntheticCameraConfig
from depthpicker.depth.colorizer import ColorizerConfig
from depthpicker.scripts.depthpicker_find_cameras import find_cameras
from depthpicker.scripts.depthpicker_view import (
    EXIT_FAILURE,
    EXIT_SUCCESS,
    RestartPolicy,
    ViewerConfig,
    run_viewer,
    view_with_restarts,
)
from tests.mocks.mock_depth_camera import TIMEOUT, MockCameraFactory
from tests.mocks.mock_engine import MockEngine


@pytest.fixture(autouse=True)
def no_restart_delay():
    with patch("depthpicker.scripts.depthpicker_view.time.sleep") as sleep:
        yield sleep


def synthetic_config(**kwargs) -> ViewerConfig:
    return ViewerConfig(
        camera=SyntheticCameraConfig(fps=0, width=16, height=8),
        colorizer=ColorizerConfig(num_workers=2),
        readout="log",
        **kwargs,
    )


def test_run_viewer_with_synthetic_camera():
    engine = MockEngine(mouse_position=(3, 3), max_ticks=4)

    status = run_viewer(synthetic_config(), engine=engine)

    assert status == EXIT_SUCCESS
    assert len(engine.rasters) == 4
    assert engine.rasters[0][0].shape == (8, 16, 4)
    assert len(engine.texts) == 4


def test_run_viewer_unrecoverable_camera():
    factory = MockCameraFactory(script=[TIMEOUT] * 3)
    with patch("depthpicker.scripts.depthpicker_view.make_camera_from_config", side_effect=lambda cfg: factory()):
        status = run_viewer(synthetic_config(), engine=MockEngine())

    assert status == EXIT_FAILURE
    assert all(not session.is_connected for session in factory.sessions)


def test_run_viewer_camera_unavailable():
    factory = MockCameraFactory(fail_connect={0})
    with patch("depthpicker.scripts.depthpicker_view.make_camera_from_config", side_effect=lambda cfg: factory()):
        status = run_viewer(synthetic_config(), engine=MockEngine())

    assert status == EXIT_FAILURE


def test_no_restart_by_default():
    runner = MagicMock(return_value=EXIT_FAILURE)

    assert view_with_restarts(synthetic_config(), runner=runner) == EXIT_FAILURE
    runner.assert_called_once()


def test_success_is_not_restarted():
    runner = MagicMock(return_value=EXIT_SUCCESS)
    cfg = synthetic_config(restart=RestartPolicy(restart_on_failure=True))

    assert view_with_restarts(cfg, runner=runner) == EXIT_SUCCESS
    runner.assert_called_once()


def test_restart_until_success(no_restart_delay):
    runner = MagicMock(side_effect=[EXIT_FAILURE, EXIT_FAILURE, EXIT_SUCCESS])
    cfg = synthetic_config(restart=RestartPolicy(restart_on_failure=True, restart_delay_s=0.5))

    assert view_with_restarts(cfg, runner=runner) == EXIT_SUCCESS
    assert runner.call_count == 3
    assert no_restart_delay.call_count == 2
    no_restart_delay.assert_called_with(0.5)


def test_restart_limit():
    runner = MagicMock(return_value=EXIT_FAILURE)
    cfg = synthetic_config(restart=RestartPolicy(restart_on_failure=True, max_restarts=2))

    assert view_with_restarts(cfg, runner=runner) == EXIT_FAILURE
    assert runner.call_count == 3


def test_unexpected_error_is_a_failure(caplog):
    runner = MagicMock(side_effect=KeyError("boom"))
    cfg = synthetic_config(restart=RestartPolicy(restart_on_failure=True))

    assert view_with_restarts(cfg, runner=runner) == EXIT_FAILURE
    runner.assert_called_once()
    assert "unexpected error" in caplog.text


def test_restarts_open_fresh_sessions():
    factory = MockCameraFactory(script=[TIMEOUT] * 3)
    cfg = synthetic_config(restart=RestartPolicy(restart_on_failure=True, max_restarts=1))

    def runner(cfg):
        return run_viewer(cfg, engine=MockEngine(max_ticks=2))

    with patch("depthpicker.scripts.depthpicker_view.make_camera_from_config", side_effect=lambda cfg: factory()):
        status = view_with_restarts(cfg, runner=runner)

    assert status == EXIT_SUCCESS
    assert len(factory.sessions) == 4
    assert factory.sessions[-1].is_connected is False


def test_parse_defaults():
    cfg = draccus.parse(ViewerConfig, args=[])

    assert isinstance(cfg.camera, RealSenseCameraConfig)
    assert cfg.acquisition.timeout_ms == 5000
    assert cfg.acquisition.max_retries == 2
    assert cfg.colorizer.gain == 5.0
    assert cfg.restart.restart_on_failure is False


def test_parse_cli_overrides():
    cfg = draccus.parse(
        ViewerConfig,
        args=[
            "--camera.type=synthetic",
            "--camera.bytes_per_pixel=4",
            "--acquisition.timeout_ms=1000",
            "--restart.restart_on_failure=true",
            "--restart.max_restarts=5",
            "--readout=log",
        ],
    )

    assert isinstance(cfg.camera, SyntheticCameraConfig)
    assert cfg.camera.bytes_per_pixel == 4
    assert cfg.acquisition.timeout_ms == 1000
    assert cfg.restart.restart_on_failure is True
    assert cfg.restart.max_restarts == 5
    assert cfg.readout == "log"


def test_invalid_readout():
    with pytest.raises(ValueError):
        ViewerConfig(readout="serial")


def test_find_cameras_synthetic():
    cameras = find_cameras("synthetic")
    assert cameras == [{"name": "Synthetic depth ramp", "type": "Synthetic", "id": "synthetic"}]


def test_find_cameras_skips_failing_backend(caplog):
    with patch(
        "depthpicker.scripts.depthpicker_find_cameras.RealSenseCamera.find_cameras",
        side_effect=RuntimeError("no SDK"),
    ):
        cameras = find_cameras()

    assert [cam["type"] for cam in cameras] == ["Synthetic"]
    assert "Error finding realsense cameras: no SDK" in caplog.text
