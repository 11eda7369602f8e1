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

"""Core data structures for navigation message processing"""

from dataclasses import dataclass

from .constants import (QZS_PRN_OFFSET, SYS_GLO, SYS_GPS, SYS_NONE, SYS_QZS,
                        char2sys, sys2char)


@dataclass(frozen=True, order=True)
class SatID:
    """Satellite identifier: constellation plus PRN/slot number.

    Attributes
    ----------
    system : int
        Satellite system ID (SYS_GPS, SYS_GLO, ...)
    prn : int
        PRN (GLONASS: slot) number within the constellation. QZSS uses the
        RINEX 3 numbering, i.e. J01 is PRN 193 - 192 = 1.

    Notes
    -----
    Ordering is by system ID, then PRN. Instances are hashable and can be
    used as dictionary keys.
    """
    system: int
    prn: int

    def __post_init__(self):
        if self.system == SYS_NONE:
            raise ValueError("Satellite system must be set")
        if self.prn < 0:
            raise ValueError(f"PRN cannot be negative: {self.prn}")

    @classmethod
    def parse(cls, text: str, default_system: int = SYS_GPS) -> 'SatID':
        """Parse ``'G05'``, ``'R12'``, ``' 5'`` (system from default) or ``'5'``.

        Raises
        ------
        ValueError
            If the text is neither a known system letter plus number nor a
            bare number.
        """
        text = text.strip()
        if not text:
            raise ValueError("Empty satellite identifier")
        if text[0].isalpha():
            system = char2sys(text[0])
            if system == SYS_NONE:
                raise ValueError(f"Unknown satellite system code: {text[0]!r}")
            return cls(system, int(text[1:]))
        return cls(default_system, int(text))

    @property
    def char(self) -> str:
        return sys2char(self.system)

    @property
    def rinex_prn(self) -> int:
        """PRN as written in RINEX 2 files and in the signal (QZSS offset)"""
        if self.system == SYS_QZS:
            return self.prn + QZS_PRN_OFFSET
        return self.prn

    def is_glonass(self) -> bool:
        return self.system == SYS_GLO

    def __str__(self):
        return f"{self.char}{self.prn:02d}"
