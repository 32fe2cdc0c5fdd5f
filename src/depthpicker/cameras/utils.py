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

from .camera import DepthCamera
from .configs import CameraConfig


def make_camera_from_config(config: CameraConfig) -> DepthCamera:
    if config.type == "intelrealsense":
        from .realsense.camera_realsense import RealSenseCamera

        return RealSenseCamera(config)

    elif config.type == "synthetic":
        from .synthetic.camera_synthetic import SyntheticCamera

        return SyntheticCamera(config)

    else:
        raise ValueError(f"The camera type '{config.type}' is not valid.")
