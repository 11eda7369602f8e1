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

"""Core Navigation Module.

This module provides the fundamental pieces shared by the rest of pynav:

- **Constants**: satellite system IDs, week arithmetic, broadcast cadence and
  navigation file format widths
- **Data Structures**: the ``SatID`` satellite identifier
- **Time Systems**: ``GNSSTime`` with an explicit time-system tag and a
  wildcard tag for scale-tolerant ordering
- **Errors**: the closed error taxonomy (``EndOfInput``, ``FormatError``,
  ``TypeMismatch``, ``DataNotLoaded``, ``NotFound``)

Example Usage:
    >>> from pynav.core import GNSSTime, SatID
    >>> t = GNSSTime(2200, 432000.0, 'GPS')
    >>> sat = SatID.parse('G05')
"""

from .constants import *
from .data_structures import *
from .errors import *
from .time import *
