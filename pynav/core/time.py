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

"""GNSS Time Systems and Conversions"""

from datetime import datetime, timedelta
from typing import Union

from cssrlib.gnss import (bdt2gpst, gpst2bdt, gpst2time, gpst2utc, time2gpst,
                          timeadd, utc2gpst)

from .constants import GPST0, SECONDS_PER_WEEK

ANY_TIME_SYS = 'ANY'
VALID_TIME_SYSTEMS = ('GPS', 'GLO', 'GAL', 'BDS', 'QZS', 'UTC', ANY_TIME_SYS)


class GNSSTime:
    """GNSS Time representation and conversion with type safety

    Week and time of week are always counted from the GPS epoch
    (1980-01-06), whatever the time scale; the ``time_sys`` tag names the
    scale the instant is expressed in. Ordering and differences refuse to mix
    scales unless one side carries the ``'ANY'`` wildcard tag.
    """

    def __init__(self, week: int = 0, tow: float = 0.0, time_sys: str = 'GPS'):
        """
        Initialize GNSS time

        Parameters:
        -----------
        week : int
            Week number (GPS epoch based)
        tow : float
            Time of week in seconds
        time_sys : str
            Time system ('GPS', 'GLO', 'GAL', 'BDS', 'QZS', 'UTC', 'ANY')
        """
        self.week = int(week)
        self.tow = float(tow)
        self.time_sys = time_sys.upper()

        if self.time_sys not in VALID_TIME_SYSTEMS:
            raise ValueError(f"Invalid time system: {time_sys}. Must be one of {list(VALID_TIME_SYSTEMS)}")

        # Normalize TOW to [0, 604800)
        while self.tow >= SECONDS_PER_WEEK:
            self.week += 1
            self.tow -= SECONDS_PER_WEEK
        while self.tow < 0:
            self.week -= 1
            self.tow += SECONDS_PER_WEEK

    @classmethod
    def from_datetime(cls, dt, time_sys='GPS'):
        """Create GNSSTime from a naive datetime expressed in ``time_sys``"""
        delta = dt - datetime(*GPST0)
        weeks = delta.days // 7
        tow = (delta.days % 7) * 86400 + delta.seconds + delta.microseconds * 1e-6
        return cls(weeks, tow, time_sys)

    @classmethod
    def from_gps_seconds(cls, gps_seconds, time_sys='GPS'):
        """Create GNSSTime from seconds since the GPS epoch"""
        week = int(gps_seconds // SECONDS_PER_WEEK)
        tow = gps_seconds - week * SECONDS_PER_WEEK
        return cls(week, tow, time_sys)

    def to_datetime(self):
        """Convert to datetime object (same time scale, no tag)"""
        return datetime(*GPST0) + timedelta(weeks=self.week, seconds=self.tow)

    def to_gps_seconds(self):
        """Seconds since the GPS epoch"""
        return self.week * SECONDS_PER_WEEK + self.tow

    def compatible(self, other: 'GNSSTime') -> bool:
        """True when the two tags may be ordered against each other"""
        return (self.time_sys == other.time_sys
                or self.time_sys == ANY_TIME_SYS
                or other.time_sys == ANY_TIME_SYS)

    def _check(self, other: 'GNSSTime', op: str):
        if not self.compatible(other):
            raise ValueError(f"Cannot {op} times with different systems: {self.time_sys} and {other.time_sys}")

    def with_system(self, time_sys: str) -> 'GNSSTime':
        """Relabel the same week/tow with another tag (no offset applied)"""
        return GNSSTime(self.week, self.tow, time_sys)

    def add_seconds(self, seconds: float) -> 'GNSSTime':
        """Add seconds to time"""
        return GNSSTime(self.week, self.tow + seconds, self.time_sys)

    def __add__(self, seconds: float) -> 'GNSSTime':
        if isinstance(seconds, (int, float)):
            return self.add_seconds(seconds)
        raise TypeError(f"Cannot add {type(seconds)} to GNSSTime")

    def __sub__(self, other: Union['GNSSTime', float]) -> Union[float, 'GNSSTime']:
        """Subtract time (-> seconds) or seconds (-> time)"""
        if isinstance(other, GNSSTime):
            self._check(other, 'subtract')
            return (self.week - other.week) * SECONDS_PER_WEEK + (self.tow - other.tow)
        elif isinstance(other, (int, float)):
            return self.add_seconds(-other)
        raise TypeError(f"Cannot subtract {type(other)} from GNSSTime")

    def __lt__(self, other: 'GNSSTime') -> bool:
        if not isinstance(other, GNSSTime):
            return NotImplemented
        self._check(other, 'compare')
        return (self.week, self.tow) < (other.week, other.tow)

    def __le__(self, other: 'GNSSTime') -> bool:
        if not isinstance(other, GNSSTime):
            return NotImplemented
        self._check(other, 'compare')
        return (self.week, self.tow) <= (other.week, other.tow)

    def __gt__(self, other: 'GNSSTime') -> bool:
        if not isinstance(other, GNSSTime):
            return NotImplemented
        self._check(other, 'compare')
        return (self.week, self.tow) > (other.week, other.tow)

    def __ge__(self, other: 'GNSSTime') -> bool:
        if not isinstance(other, GNSSTime):
            return NotImplemented
        self._check(other, 'compare')
        return (self.week, self.tow) >= (other.week, other.tow)

    def __eq__(self, other: 'GNSSTime') -> bool:
        """Equality comparison (wildcard tag matches any scale)"""
        if not isinstance(other, GNSSTime):
            return NotImplemented
        return self.compatible(other) and self.week == other.week and abs(self.tow - other.tow) < 1e-9

    __hash__ = None

    def __str__(self):
        return f"{self.time_sys} Week: {self.week}, TOW: {self.tow:.3f}"

    def __repr__(self):
        return f"GNSSTime({self.week}, {self.tow}, '{self.time_sys}')"

    def copy(self) -> 'GNSSTime':
        """Create a copy of this time instance"""
        return GNSSTime(self.week, self.tow, self.time_sys)


# GLONASS system time runs 3 h ahead of UTC
_GLO_UTC_OFFSET = 10800.0


def to_gtime(t: GNSSTime):
    """Convert to a cssrlib ``gtime_t`` in GPS time.

    BDS, UTC and GLO tagged instants are shifted onto GPST with cssrlib's
    leap second handling; GPS, GAL, QZS and ANY are taken as GPST already.
    """
    gt = gpst2time(t.week, t.tow)
    if t.time_sys == 'BDS':
        return bdt2gpst(gt)
    if t.time_sys == 'UTC':
        return utc2gpst(gt)
    if t.time_sys == 'GLO':
        return utc2gpst(timeadd(gt, -_GLO_UTC_OFFSET))
    return gt


def from_gtime(gt, time_sys: str = 'GPS') -> GNSSTime:
    """Inverse of ``to_gtime``: express a GPST ``gtime_t`` in ``time_sys``"""
    time_sys = time_sys.upper()
    if time_sys == 'BDS':
        gt = gpst2bdt(gt)
    elif time_sys == 'UTC':
        gt = gpst2utc(gt)
    elif time_sys == 'GLO':
        gt = timeadd(gpst2utc(gt), _GLO_UTC_OFFSET)
    week, tow = time2gpst(gt)
    return GNSSTime(week, tow, time_sys)
