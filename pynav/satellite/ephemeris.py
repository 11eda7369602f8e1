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

"""Broadcast ephemeris models.

One dataclass per constellation variant, each carrying an ``EphKind``
discriminant:

- ``LegacyGPSEphemeris`` and ``GPSEphemeris`` (same content, different tag)
- ``QZSSEphemeris``
- ``GalileoEphemeris``
- ``BeiDouEphemeris``
- ``GLONASSEphemeris`` (state vectors instead of Keplerian elements)

Models are built from a decoded ``NavRecord`` or from cssrlib ``Eph``/``Geph``
objects. Units are normalized at construction: fit interval in hours, angles
in radians, GLONASS vectors in meters.
"""

import logging
import math
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import ClassVar, Dict, List, Optional, Tuple

import numpy as np
from cssrlib.gnss import Eph, Geph, prn2sat, sat2prn, uGNSS

from ..core.constants import (BDS_WEEK_OFFSET, QZS_PRN_OFFSET,
                              SECONDS_PER_DAY, SYS_BDS, SYS_GAL, SYS_GLO,
                              SYS_GPS, SYS_QZS, SYS_TIME_TAG, sys2name)
from ..core.data_structures import SatID
from ..core.errors import DataNotLoaded, TypeMismatch
from ..core.time import ANY_TIME_SYS, GNSSTime, from_gtime, to_gtime
from ..io.rinex_nav import NavRecord, orbit_field_names
from ..logger import TRACE
from .validity import (QZS_FIT_HOURS, ValidityConfig, compute_validity_window,
                       fit_interval_hours)

logger = logging.getLogger(__name__)

# RINEX marks an unknown transmission time with 0.9999E+09
UNKNOWN_TRANSMIT_TIME = 9.999e8

# GLONASS RINEX vectors are in km, km/s, km/s^2
_KM = 1000.0

_CSSRLIB_SYSTEM = {
    SYS_GPS: uGNSS.GPS,
    SYS_GLO: uGNSS.GLO,
    SYS_GAL: uGNSS.GAL,
    SYS_BDS: uGNSS.BDS,
    SYS_QZS: uGNSS.QZS,
}


class EphKind(Enum):
    """Ephemeris variant discriminant"""
    LEGACY_GPS = 'legacy-gps'
    GPS = 'gps'
    GLONASS = 'glonass'
    GALILEO = 'galileo'
    BEIDOU = 'beidou'
    QZSS = 'qzss'


def _cssrlib_sat(sat: SatID) -> int:
    prn = sat.prn + QZS_PRN_OFFSET if sat.system == SYS_QZS else sat.prn
    return prn2sat(_CSSRLIB_SYSTEM[sat.system], prn)


def _sat_from_cssrlib(cssr_sat: int, expected: int, kind: 'EphKind') -> SatID:
    cssr_sys, prn = sat2prn(cssr_sat)
    if cssr_sys != _CSSRLIB_SYSTEM[expected]:
        raise TypeMismatch(f"cssrlib system {cssr_sys}", kind.value)
    if expected == SYS_QZS:
        prn -= QZS_PRN_OFFSET
    return SatID(expected, prn)


def _gtime_or_none(gt, time_sys: str) -> Optional[GNSSTime]:
    # cssrlib leaves unset epochs at gtime_t() == 1970-01-01
    if gt is None or (gt.time == 0 and gt.sec == 0.0):
        return None
    return from_gtime(gt, time_sys)


def _fit_hours_from_cssrlib(eph, iodc: int) -> float:
    fit = getattr(eph, 'fit', 0)
    if fit:
        return float(fit)
    return float(fit_interval_hours(iodc, 0))


@dataclass(eq=False)
class EphemerisModel:
    """
    Common part of every ephemeris variant

    Attributes
    ----------
    sat : SatID
        Satellite
    toc : GNSSTime
        Clock reference epoch, tagged with the constellation's time scale
    af0, af1, af2 : float
        Clock bias (s), drift (s/s) and drift rate (s/s^2)
    toe : GNSSTime
        Ephemeris reference epoch (defaults to ``toc``)
    transmit_time : GNSSTime or None
        Transmission time of the message, when known
    health : int
        Health word; 0 is healthy
    accuracy : float
        User range accuracy (m)

    Notes
    -----
    Ordering is by clock epoch regardless of time scale, then satellite.
    The validity window is computed once by ``compute_validity``; reading it
    before then raises ``DataNotLoaded``.
    """
    kind: ClassVar[EphKind]
    system: ClassVar[int]

    sat: SatID
    toc: GNSSTime
    af0: float = 0.0
    af1: float = 0.0
    af2: float = 0.0
    toe: Optional[GNSSTime] = None
    transmit_time: Optional[GNSSTime] = None
    health: int = 0
    accuracy: float = 0.0
    _begin_valid: Optional[GNSSTime] = field(default=None, init=False, repr=False)
    _end_valid: Optional[GNSSTime] = field(default=None, init=False, repr=False)

    def __post_init__(self):
        if self.sat.system != self.system:
            raise TypeMismatch(sys2name(self.sat.system), self.kind.value)
        if self.toe is None:
            self.toe = self.toc.copy()

    @property
    def time_sys(self) -> str:
        return SYS_TIME_TAG[self.system]

    # Validity

    def compute_validity(self, config: Optional[ValidityConfig] = None) -> Tuple[GNSSTime, GNSSTime]:
        """Derive and store the validity window (first call only)"""
        if self._begin_valid is None:
            self._begin_valid, self._end_valid = compute_validity_window(self, config)
        return self._begin_valid, self._end_valid

    @property
    def has_validity(self) -> bool:
        return self._begin_valid is not None

    @property
    def begin_valid(self) -> GNSSTime:
        if self._begin_valid is None:
            raise DataNotLoaded(f"validity window of {self.sat}")
        return self._begin_valid

    @property
    def end_valid(self) -> GNSSTime:
        if self._end_valid is None:
            raise DataNotLoaded(f"validity window of {self.sat}")
        return self._end_valid

    def is_valid(self, t: GNSSTime) -> bool:
        """True when ``begin_valid <= t < end_valid``"""
        return self.begin_valid <= t < self.end_valid

    # Clock model

    def clock_bias(self, t: GNSSTime) -> float:
        """Satellite clock offset (s) at ``t`` from the broadcast polynomial"""
        dt = t - self.toc
        return self.af0 + self.af1 * dt + self.af2 * dt * dt

    def clock_drift(self, t: GNSSTime) -> float:
        """Satellite clock drift (s/s) at ``t``"""
        dt = t - self.toc
        return self.af1 + 2.0 * self.af2 * dt

    def is_healthy(self) -> bool:
        return self.health == 0

    # Ordering

    def __lt__(self, other: 'EphemerisModel') -> bool:
        if not isinstance(other, EphemerisModel):
            return NotImplemented
        mine = self.toc.with_system(ANY_TIME_SYS)
        theirs = other.toc.with_system(ANY_TIME_SYS)
        if mine == theirs:
            return self.sat < other.sat
        return mine < theirs

    # Flat views

    def to_dict(self) -> Dict[str, object]:
        """Flat dictionary view; times as GPS-epoch seconds, vectors split"""
        out: Dict[str, object] = {'kind': self.kind.value, 'sat': str(self.sat)}
        for f in fields(self):
            if not f.init or f.name == 'sat':
                continue
            value = getattr(self, f.name)
            if isinstance(value, GNSSTime):
                value = value.to_gps_seconds()
            if isinstance(value, np.ndarray):
                for axis, component in zip('xyz', value):
                    out[f"{f.name}_{axis}"] = float(component)
                continue
            out[f.name] = value
        if self.has_validity:
            out['begin_valid'] = self._begin_valid.to_gps_seconds()
            out['end_valid'] = self._end_valid.to_gps_seconds()
        return out

    # Record conversion

    def _clock_values(self) -> List[float]:
        return [self.af0, self.af1, self.af2]

    def _orbit_values(self) -> Dict[str, float]:
        raise NotImplementedError

    def to_record(self, version: float = 3.04) -> NavRecord:
        """Build the ``NavRecord`` for this model in RINEX ``version``"""
        values = self._orbit_values()
        names = orbit_field_names(self.system, version)
        orbit = [float(values.get(name, 0.0)) for name in names]
        return NavRecord(self.system, self.sat, self.toc.to_datetime(),
                         self._clock_values(), orbit, version)

    @classmethod
    def _check_record(cls, record: NavRecord):
        if record.system != cls.system:
            raise TypeMismatch(sys2name(record.system), cls.kind.value)


_KEPLER_FIELDS = (
    ('crs', 'Crs'), ('delta_n', 'DeltaN'), ('m0', 'M0'),
    ('cuc', 'Cuc'), ('e', 'Eccentricity'), ('cus', 'Cus'), ('sqrt_a', 'sqrtA'),
    ('cic', 'Cic'), ('omega0', 'Omega0'), ('cis', 'Cis'),
    ('i0', 'Io'), ('crc', 'Crc'), ('omega', 'omega'), ('omega_dot', 'OmegaDot'),
    ('idot', 'IDOT'),
)

# cssrlib Eph attribute for each element (sqrt_a handled separately)
_KEPLER_CSSRLIB = (
    ('crs', 'crs'), ('delta_n', 'deln'), ('m0', 'M0'),
    ('cuc', 'cuc'), ('e', 'e'), ('cus', 'cus'),
    ('cic', 'cic'), ('omega0', 'OMG0'), ('cis', 'cis'),
    ('i0', 'i0'), ('crc', 'crc'), ('omega', 'omg'), ('omega_dot', 'OMGd'),
    ('idot', 'idot'),
)


@dataclass(eq=False)
class KeplerEphemeris(EphemerisModel):
    """Keplerian elements plus harmonic corrections (GPS-like systems)

    Angles in radians, rates in rad/s, ``sqrt_a`` in m^1/2.
    """
    sqrt_a: float = 0.0
    e: float = 0.0
    i0: float = 0.0
    omega0: float = 0.0
    omega: float = 0.0
    m0: float = 0.0
    delta_n: float = 0.0
    omega_dot: float = 0.0
    idot: float = 0.0
    cuc: float = 0.0
    cus: float = 0.0
    crc: float = 0.0
    crs: float = 0.0
    cic: float = 0.0
    cis: float = 0.0

    @staticmethod
    def _kepler_from_record(values: Dict[str, float]) -> Dict[str, float]:
        return {attr: values[name] for attr, name in _KEPLER_FIELDS}

    def _kepler_to_record(self) -> Dict[str, float]:
        return {name: getattr(self, attr) for attr, name in _KEPLER_FIELDS}

    def _week_field(self) -> float:
        return float(self.toe.week)

    def _transmit_field(self) -> float:
        """Transmission time as seconds of the Toe week (may be negative)"""
        if self.transmit_time is None:
            return UNKNOWN_TRANSMIT_TIME
        return self.transmit_time - GNSSTime(self.toe.week, 0.0, self.toe.time_sys)

    @classmethod
    def _times_from_record(cls, record: NavRecord, week: int,
                           values: Dict[str, float]):
        tag = SYS_TIME_TAG[cls.system]
        toc = GNSSTime.from_datetime(record.epoch, tag)
        toe = GNSSTime(week, values['Toe'], tag)
        transmit = None
        if abs(values['TransTime']) < UNKNOWN_TRANSMIT_TIME:
            transmit = GNSSTime(week, values['TransTime'], tag)
        return toc, toe, transmit

    # cssrlib

    def _kepler_from_cssrlib(self, eph):
        for attr, name in _KEPLER_CSSRLIB:
            setattr(self, attr, float(getattr(eph, name)))
        self.sqrt_a = math.sqrt(eph.A) if eph.A > 0 else 0.0

    def _fill_cssrlib(self, eph):
        for attr, name in _KEPLER_CSSRLIB:
            setattr(eph, name, getattr(self, attr))
        eph.A = self.sqrt_a ** 2
        eph.af0, eph.af1, eph.af2 = self.af0, self.af1, self.af2
        eph.toc = to_gtime(self.toc)
        eph.toe = to_gtime(self.toe)
        eph.toes = self.toe.tow
        if self.transmit_time is not None:
            eph.tot = to_gtime(self.transmit_time)
        eph.svh = int(self.health)
        eph.sva = self.accuracy
        eph.week = int(self._week_field())

    @classmethod
    def _common_from_cssrlib(cls, eph) -> dict:
        tag = SYS_TIME_TAG[cls.system]
        return dict(
            sat=_sat_from_cssrlib(eph.sat, cls.system, cls.kind),
            toc=from_gtime(eph.toc, tag),
            af0=float(eph.af0), af1=float(eph.af1), af2=float(eph.af2),
            toe=from_gtime(eph.toe, tag),
            transmit_time=_gtime_or_none(getattr(eph, 'tot', None), tag),
            health=int(eph.svh),
            accuracy=float(eph.sva),
        )

    def to_cssrlib(self) -> Eph:
        """Build a cssrlib ``Eph`` carrying this model's elements"""
        eph = Eph(_cssrlib_sat(self.sat))
        self._fill_cssrlib(eph)
        return eph


@dataclass(eq=False)
class _GPSLikeEphemeris(KeplerEphemeris):
    """Fields shared by the LNAV-style GPS and QZSS messages"""
    iode: int = 0
    iodc: int = 0
    tgd: float = 0.0
    codes_l2: int = 0
    l2p_flag: int = 0
    fit_interval: float = 4.0

    week_field_name: ClassVar[str] = 'GPSWeek'
    fit_field_name: ClassVar[str] = 'FitIntvl'

    @classmethod
    def _fit_from_field(cls, raw: float, iodc: int) -> float:
        """Fit interval in hours from the RINEX field (hours, or a 0/1 flag)"""
        if raw in (0.0, 1.0):
            return float(fit_interval_hours(iodc, int(raw)))
        return raw

    def _fit_field(self) -> float:
        return self.fit_interval

    @classmethod
    def from_record(cls, record: NavRecord):
        cls._check_record(record)
        values = record.as_dict()
        week = int(values[cls.week_field_name])
        toc, toe, transmit = cls._times_from_record(record, week, values)
        iodc = int(values['IODC'])
        return cls(
            sat=record.sat, toc=toc,
            af0=record.clock[0], af1=record.clock[1], af2=record.clock[2],
            toe=toe, transmit_time=transmit,
            health=int(values['health']), accuracy=values['SVacc'],
            iode=int(values['IODE']), iodc=iodc, tgd=values['TGD'],
            codes_l2=int(values['CodesL2']), l2p_flag=int(values['L2Pflag']),
            fit_interval=cls._fit_from_field(values[cls.fit_field_name], iodc),
            **cls._kepler_from_record(values),
        )

    def _orbit_values(self) -> Dict[str, float]:
        values = self._kepler_to_record()
        values.update({
            'IODE': self.iode, 'IODC': self.iodc, 'Toe': self.toe.tow,
            self.week_field_name: self._week_field(),
            'CodesL2': self.codes_l2, 'L2Pflag': self.l2p_flag,
            'SVacc': self.accuracy, 'health': self.health, 'TGD': self.tgd,
            'TransTime': self._transmit_field(),
            self.fit_field_name: self._fit_field(),
        })
        return values

    @classmethod
    def from_cssrlib(cls, eph):
        """Build from a cssrlib ``Eph``"""
        iodc = int(eph.iodc)
        model = cls(iode=int(eph.iode), iodc=iodc, tgd=float(eph.tgd),
                    codes_l2=int(getattr(eph, 'code', 0)), l2p_flag=int(getattr(eph, 'l2p', 0)),
                    fit_interval=_fit_hours_from_cssrlib(eph, iodc),
                    **cls._common_from_cssrlib(eph))
        model._kepler_from_cssrlib(eph)
        return model

    def _fill_cssrlib(self, eph):
        super()._fill_cssrlib(eph)
        eph.iode, eph.iodc = self.iode, self.iodc
        eph.tgd = self.tgd
        eph.code, eph.l2p = self.codes_l2, self.l2p_flag
        eph.fit = self.fit_interval


@dataclass(eq=False)
class GPSEphemeris(_GPSLikeEphemeris):
    """GPS LNAV ephemeris"""
    kind: ClassVar[EphKind] = EphKind.GPS
    system: ClassVar[int] = SYS_GPS


@dataclass(eq=False)
class LegacyGPSEphemeris(_GPSLikeEphemeris):
    """GPS ephemeris in the legacy subframe-oriented representation.

    Same content as ``GPSEphemeris``; exposes the subframe view (fit flag
    and HOW time of subframe 1). ``convert`` relabels between the two.
    """
    kind: ClassVar[EphKind] = EphKind.LEGACY_GPS
    system: ClassVar[int] = SYS_GPS

    @property
    def fit_flag(self) -> int:
        return 0 if self.fit_interval <= 4 else 1

    @property
    def how_time(self) -> Optional[float]:
        """Subframe 1 HOW time (seconds of week), aligned to 30 s"""
        if self.transmit_time is None:
            return None
        tow = self.transmit_time.tow
        return tow - tow % 30


@dataclass(eq=False)
class QZSSEphemeris(_GPSLikeEphemeris):
    """QZSS LNAV ephemeris; RINEX carries a fit flag (0: 2 h, 1: 4 h)"""
    kind: ClassVar[EphKind] = EphKind.QZSS
    system: ClassVar[int] = SYS_QZS

    week_field_name: ClassVar[str] = 'QZSWeek'
    fit_field_name: ClassVar[str] = 'FitFlag'

    @classmethod
    def _fit_from_field(cls, raw: float, iodc: int) -> float:
        if raw in (0.0, 1.0):
            return QZS_FIT_HOURS[int(raw)]
        return raw

    def _fit_field(self) -> float:
        for flag, hours in QZS_FIT_HOURS.items():
            if self.fit_interval == hours:
                return float(flag)
        return self.fit_interval


@dataclass(eq=False)
class GalileoEphemeris(KeplerEphemeris):
    """Galileo I/NAV or F/NAV ephemeris; ``accuracy`` holds SISA (m)"""
    kind: ClassVar[EphKind] = EphKind.GALILEO
    system: ClassVar[int] = SYS_GAL

    iodnav: int = 0
    data_sources: int = 0
    bgd_e5a: float = 0.0
    bgd_e5b: float = 0.0

    @classmethod
    def from_record(cls, record: NavRecord) -> 'GalileoEphemeris':
        cls._check_record(record)
        values = record.as_dict()
        # RINEX Galileo week is already aligned to the GPS week
        toc, toe, transmit = cls._times_from_record(record, int(values['GALWeek']), values)
        return cls(
            sat=record.sat, toc=toc,
            af0=record.clock[0], af1=record.clock[1], af2=record.clock[2],
            toe=toe, transmit_time=transmit,
            health=int(values['health']), accuracy=values['SISA'],
            iodnav=int(values['IODnav']), data_sources=int(values['DataSources']),
            bgd_e5a=values['BGDe5a'], bgd_e5b=values['BGDe5b'],
            **cls._kepler_from_record(values),
        )

    def _orbit_values(self) -> Dict[str, float]:
        values = self._kepler_to_record()
        values.update({
            'IODnav': self.iodnav, 'Toe': self.toe.tow, 'GALWeek': self._week_field(),
            'DataSources': self.data_sources, 'SISA': self.accuracy,
            'health': self.health, 'BGDe5a': self.bgd_e5a, 'BGDe5b': self.bgd_e5b,
            'TransTime': self._transmit_field(),
        })
        return values

    @classmethod
    def from_cssrlib(cls, eph) -> 'GalileoEphemeris':
        model = cls(iodnav=int(eph.iode), data_sources=int(getattr(eph, 'code', 0)),
                    bgd_e5a=float(eph.tgd), bgd_e5b=float(getattr(eph, 'tgd_b', 0.0)),
                    **cls._common_from_cssrlib(eph))
        model._kepler_from_cssrlib(eph)
        return model

    def _fill_cssrlib(self, eph):
        super()._fill_cssrlib(eph)
        eph.iode = eph.iodc = self.iodnav
        eph.code = self.data_sources
        eph.tgd, eph.tgd_b = self.bgd_e5a, self.bgd_e5b


@dataclass(eq=False)
class BeiDouEphemeris(KeplerEphemeris):
    """BeiDou D1/D2 ephemeris; times are BDT"""
    kind: ClassVar[EphKind] = EphKind.BEIDOU
    system: ClassVar[int] = SYS_BDS

    aode: int = 0
    aodc: int = 0
    tgd1: float = 0.0
    tgd2: float = 0.0

    def _week_field(self) -> float:
        return float(self.toe.week - BDS_WEEK_OFFSET)

    @classmethod
    def from_record(cls, record: NavRecord) -> 'BeiDouEphemeris':
        cls._check_record(record)
        values = record.as_dict()
        week = int(values['BDTWeek']) + BDS_WEEK_OFFSET
        toc, toe, transmit = cls._times_from_record(record, week, values)
        return cls(
            sat=record.sat, toc=toc,
            af0=record.clock[0], af1=record.clock[1], af2=record.clock[2],
            toe=toe, transmit_time=transmit,
            health=int(values['SatH1']), accuracy=values['SVacc'],
            aode=int(values['AODE']), aodc=int(values['AODC']),
            tgd1=values['TGD1'], tgd2=values['TGD2'],
            **cls._kepler_from_record(values),
        )

    def _orbit_values(self) -> Dict[str, float]:
        values = self._kepler_to_record()
        values.update({
            'AODE': self.aode, 'AODC': self.aodc, 'Toe': self.toe.tow,
            'BDTWeek': self._week_field(), 'SVacc': self.accuracy,
            'SatH1': self.health, 'TGD1': self.tgd1, 'TGD2': self.tgd2,
            'TransTime': self._transmit_field(),
        })
        return values

    @classmethod
    def from_cssrlib(cls, eph) -> 'BeiDouEphemeris':
        model = cls(aode=int(eph.iode), aodc=int(eph.iodc),
                    tgd1=float(eph.tgd), tgd2=float(getattr(eph, 'tgd_b', 0.0)),
                    **cls._common_from_cssrlib(eph))
        model._kepler_from_cssrlib(eph)
        return model

    def _fill_cssrlib(self, eph):
        super()._fill_cssrlib(eph)
        eph.iode, eph.iodc = self.aode, self.aodc
        eph.tgd, eph.tgd_b = self.tgd1, self.tgd2


def _zero_vector():
    return np.zeros(3)


@dataclass(eq=False)
class GLONASSEphemeris(EphemerisModel):
    """
    GLONASS ephemeris: PZ-90 state vector at ``toc`` (UTC)

    Attributes
    ----------
    position, velocity, acceleration : np.ndarray
        State in m, m/s and m/s^2
    freq_num : int
        FDMA frequency channel number (-7..+6)
    age : float
        Age of operational information (days)
    frame_time : float
        Message frame time (seconds of the UTC week)
    status_flags, group_delay, urai, health_flags : float
        RINEX 3.05 fourth orbit line; zero when absent

    Notes
    -----
    ``af0`` holds the RINEX clock term -TauN and ``af1`` holds GammaN, so
    the base clock polynomial gives -TauN + GammaN * (t - toc).
    """
    kind: ClassVar[EphKind] = EphKind.GLONASS
    system: ClassVar[int] = SYS_GLO

    position: np.ndarray = field(default_factory=_zero_vector)
    velocity: np.ndarray = field(default_factory=_zero_vector)
    acceleration: np.ndarray = field(default_factory=_zero_vector)
    freq_num: int = 0
    age: float = 0.0
    frame_time: float = 0.0
    status_flags: float = 0.0
    group_delay: float = 0.0
    urai: float = 0.0
    health_flags: float = 0.0

    def __post_init__(self):
        super().__post_init__()
        for name in ('position', 'velocity', 'acceleration'):
            vector = np.asarray(getattr(self, name), dtype=float)
            if vector.shape != (3,):
                raise ValueError(f"GLONASS {name} needs 3 components, got shape {vector.shape}")
            setattr(self, name, vector)

    @property
    def tau_n(self) -> float:
        """Clock bias TauN (s), positive convention"""
        return -self.af0

    @property
    def gamma_n(self) -> float:
        """Relative frequency bias"""
        return self.af1

    def _clock_values(self) -> List[float]:
        return [self.af0, self.af1, self.frame_time]

    @classmethod
    def from_record(cls, record: NavRecord) -> 'GLONASSEphemeris':
        cls._check_record(record)
        values = record.as_dict()
        toc = GNSSTime.from_datetime(record.epoch, SYS_TIME_TAG[SYS_GLO])
        return cls(
            sat=record.sat, toc=toc,
            af0=values['MinusTauN'], af1=values['GammaN'],
            health=int(values['health']),
            position=np.array([values['X'], values['Y'], values['Z']]) * _KM,
            velocity=np.array([values['dX'], values['dY'], values['dZ']]) * _KM,
            acceleration=np.array([values['dX2'], values['dY2'], values['dZ2']]) * _KM,
            freq_num=int(values['FreqNum']),
            age=values['AgeOpInfo'],
            frame_time=values['MessageFrameTime'],
            status_flags=values.get('StatusFlags', 0.0),
            group_delay=values.get('DelayL1L2', 0.0),
            urai=values.get('URAI', 0.0),
            health_flags=values.get('HealthFlags', 0.0),
        )

    def _orbit_values(self) -> Dict[str, float]:
        pos = self.position / _KM
        vel = self.velocity / _KM
        acc = self.acceleration / _KM
        values = {'health': self.health, 'FreqNum': self.freq_num, 'AgeOpInfo': self.age,
                  'StatusFlags': self.status_flags, 'DelayL1L2': self.group_delay,
                  'URAI': self.urai, 'HealthFlags': self.health_flags}
        for i, axis in enumerate('XYZ'):
            values[axis] = pos[i]
            values[f"d{axis}"] = vel[i]
            values[f"d{axis}2"] = acc[i]
        return values

    @classmethod
    def from_cssrlib(cls, geph) -> 'GLONASSEphemeris':
        """Build from a cssrlib ``Geph`` (vectors already in meters)"""
        tag = SYS_TIME_TAG[SYS_GLO]
        toc = from_gtime(geph.toe, tag)
        tof = _gtime_or_none(getattr(geph, 'tof', None), tag)
        return cls(
            sat=_sat_from_cssrlib(geph.sat, SYS_GLO, cls.kind),
            toc=toc,
            af0=-float(geph.taun), af1=float(geph.gamn),
            health=int(geph.svh),
            accuracy=float(geph.sva),
            position=np.array(geph.pos, dtype=float),
            velocity=np.array(geph.vel, dtype=float),
            acceleration=np.array(geph.acc, dtype=float),
            freq_num=int(geph.frq),
            age=float(geph.age),
            frame_time=tof.tow if tof is not None else 0.0,
            group_delay=float(getattr(geph, 'dtaun', 0.0)),
        )

    def to_cssrlib(self) -> Geph:
        """Build a cssrlib ``Geph``"""
        geph = Geph(_cssrlib_sat(self.sat))
        geph.toe = to_gtime(self.toc)
        geph.tof = to_gtime(GNSSTime(self.toc.week, self.frame_time, self.toc.time_sys))
        geph.taun = self.tau_n
        geph.gamn = self.gamma_n
        geph.dtaun = self.group_delay
        geph.pos = self.position.copy()
        geph.vel = self.velocity.copy()
        geph.acc = self.acceleration.copy()
        geph.svh = int(self.health)
        geph.sva = self.accuracy
        geph.frq = int(self.freq_num)
        geph.age = self.age
        # tb: index of the 15 minute interval within the (Moscow) day
        geph.iode = int(((self.toc.tow + 10800.0) % SECONDS_PER_DAY) // 900)
        return geph


EPHEMERIS_TYPES = {
    EphKind.LEGACY_GPS: LegacyGPSEphemeris,
    EphKind.GPS: GPSEphemeris,
    EphKind.QZSS: QZSSEphemeris,
    EphKind.GALILEO: GalileoEphemeris,
    EphKind.BEIDOU: BeiDouEphemeris,
    EphKind.GLONASS: GLONASSEphemeris,
}

# Variant built for each system when decoding records
RECORD_TYPES = {
    SYS_GPS: GPSEphemeris,
    SYS_QZS: QZSSEphemeris,
    SYS_GAL: GalileoEphemeris,
    SYS_BDS: BeiDouEphemeris,
    SYS_GLO: GLONASSEphemeris,
}


def model_from_record(record: NavRecord, config: Optional[ValidityConfig] = None,
                      legacy: bool = False) -> EphemerisModel:
    """
    Build an ephemeris model from a decoded record and compute its window

    Parameters
    ----------
    record : NavRecord
        Decoded navigation record
    config : ValidityConfig, optional
        Validity window conventions
    legacy : bool
        Build ``LegacyGPSEphemeris`` instead of ``GPSEphemeris`` for GPS

    Returns
    -------
    EphemerisModel
        Model with its validity window computed
    """
    if legacy and record.system == SYS_GPS:
        cls = LegacyGPSEphemeris
    else:
        cls = RECORD_TYPES[record.system]
    model = cls.from_record(record)
    begin, end = model.compute_validity(config)
    logger.log(TRACE, "%s %s valid [%s, %s)", model.kind.value, model.sat, begin, end)
    return model


def to_record(model: EphemerisModel, version: float = 3.04) -> NavRecord:
    """Record for ``model`` in RINEX ``version``"""
    return model.to_record(version)
