# Copyright 2024 inuex35
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
PyNav - Broadcast Navigation Message Library

Reads and writes RINEX navigation files, builds typed ephemeris models for
GPS, GLONASS, Galileo, BeiDou and QZSS, derives each model's validity window
and serves the right ephemeris for a satellite at a given time.
"""

__version__ = "1.0.0"
__author__ = "PyNav Development Team"
__title__ = "pynav"
__description__ = "Broadcast navigation message codec and ephemeris store"

from .core import *
from .io import *
from .satellite import *
from .logger import setup_logger
