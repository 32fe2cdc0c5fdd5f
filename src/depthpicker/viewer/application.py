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

from __future__ import annotations

import abc
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .engine import WindowEngine


class Application(abc.ABC):
    """Callbacks driven by a `WindowEngine` loop.

    The engine assigns itself to `engine` before calling `on_create`, then calls
    `on_update` once per rendered frame until one of them returns False or the window
    is closed. `on_destroy` is always called when the loop ends.
    """

    engine: WindowEngine | None = None

    @abc.abstractmethod
    def on_create(self) -> bool:
        """Called once before the first frame. Returning False ends the loop immediately."""
        pass

    @abc.abstractmethod
    def on_update(self, elapsed_time: float) -> bool:
        """Called once per frame with the seconds elapsed since the previous call."""
        pass

    def on_destroy(self) -> None:
        pass
