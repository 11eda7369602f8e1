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

"""Error taxonomy for navigation message handling.

Every failure surfaced by pynav is one of five conditions:

- ``EndOfInput``: the source is exhausted. Expected; ends bulk loads.
- ``FormatError``: malformed line, wrong field count, unparsable number
  or oversized line.
- ``TypeMismatch``: conversion between distinct constellations.
- ``DataNotLoaded``: attribute requested from an incompletely built model.
- ``NotFound``: no ephemeris covers the requested satellite/time.
"""

from typing import Optional


class NavError(Exception):
    """Base class for all navigation data errors"""


class EndOfInput(NavError):
    """Clean end of the underlying source"""

    def __init__(self, source: str = '', record_number: int = 0):
        self.source = source
        self.record_number = record_number
        super().__init__(f"end of input in {source or '<stream>'} after record {record_number}")


class FormatError(NavError):
    """Malformed navigation text

    Attributes
    ----------
    reason : str
        What was wrong with the input
    line_number : int
        1-based physical line number in the source (0 if unknown)
    field : str, optional
        Name of the offending field, when one can be identified
    """

    def __init__(self, reason: str, line_number: int = 0,
                 field: Optional[str] = None, source: str = ''):
        self.reason = reason
        self.line_number = line_number
        self.field = field
        self.source = source
        where = f"{source}:{line_number}" if source else f"line {line_number}"
        what = f" [{field}]" if field else ""
        super().__init__(f"{where}: {reason}{what}")


class TypeMismatch(NavError):
    """Conversion across distinct constellations was requested"""

    def __init__(self, source, target):
        self.source = source
        self.target = target
        super().__init__(f"cannot convert {source} ephemeris to {target}")


class DataNotLoaded(NavError):
    """A model attribute was read before the model was fully built"""

    def __init__(self, what: str):
        self.what = what
        super().__init__(f"data not loaded: {what}")


class NotFound(NavError):
    """No stored ephemeris satisfies the query"""

    def __init__(self, sat, time=None):
        self.sat = sat
        self.time = time
        if time is None:
            super().__init__(f"no ephemeris for {sat}")
        else:
            super().__init__(f"no ephemeris for {sat} valid at {time}")
