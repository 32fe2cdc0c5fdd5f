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

"""
Helper to find the depth cameras available in your system.

Example:

```shell
depthpicker-find-cameras
depthpicker-find-cameras realsense
```
"""

import argparse
import logging
from typing import Any

from depthpicker.cameras.realsense.camera_realsense import RealSenseCamera
from depthpicker.cameras.synthetic.camera_synthetic import SyntheticCamera
from depthpicker.utils.utils import init_logging

logger = logging.getLogger(__name__)

CAMERA_CLASSES = {
    "realsense": RealSenseCamera,
    "synthetic": SyntheticCamera,
}


def find_cameras(camera_type: str | None = None) -> list[dict[str, Any]]:
    """
    Finds the cameras of `camera_type`, or of every supported type when it is None.

    A backend whose SDK is missing or fails is reported in the log and skipped.
    """
    all_cameras_info: list[dict[str, Any]] = []
    for name, camera_class in CAMERA_CLASSES.items():
        if camera_type is not None and name != camera_type:
            continue

        logger.info(f"Searching for {name} cameras...")
        try:
            cameras_info = camera_class.find_cameras()
        except Exception as e:
            logger.error(f"Error finding {name} cameras: {e}")
            continue
        logger.info(f"Found {len(cameras_info)} {name} cameras.")
        all_cameras_info.extend(cameras_info)

    return all_cameras_info


def main():
    parser = argparse.ArgumentParser(description="List the depth cameras connected to this machine.")
    parser.add_argument(
        "camera_type",
        nargs="?",
        choices=sorted(CAMERA_CLASSES),
        default=None,
        help="Only search cameras of this type.",
    )
    args = parser.parse_args()

    init_logging()
    cameras_info = find_cameras(args.camera_type)
    if not cameras_info:
        logger.warning("No cameras detected.")
        return

    print("\n--- Detected Cameras ---")
    for i, cam_info in enumerate(cameras_info):
        print(f"Camera #{i}:")
        for key, value in cam_info.items():
            if key == "default_stream_profile" and isinstance(value, dict):
                print(f"  {key.replace('_', ' ').capitalize()}:")
                for sub_key, sub_value in value.items():
                    print(f"    {sub_key.capitalize()}: {sub_value}")
            else:
                print(f"  {key.replace('_', ' ').capitalize()}: {value}")
        print("-" * 20)


if __name__ == "__main__":
    main()
