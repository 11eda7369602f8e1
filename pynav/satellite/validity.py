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

"""Fit interval resolution and ephemeris validity windows"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from ..core.constants import (BDS_VALIDITY, FRAME_PERIOD, GAL_VALIDITY,
                              GLO_HALF_VALIDITY, MIN_FIT_INTERVAL,
                              SECONDS_PER_HOUR, SECONDS_PER_WEEK, SYS_BDS,
                              SYS_GAL, SYS_GLO, SYS_GPS, SYS_QZS,
                              TOC_CUTOVER_PERIOD)
from ..core.time import GNSSTime

logger = logging.getLogger(__name__)

# QZSS fit interval flag -> hours
QZS_FIT_HOURS = {0: 2.0, 1: 4.0}


@dataclass
class ValidityConfig:
    """Validity window configuration

    Attributes
    ----------
    toe_centered : bool
        Use ``[Toe, Toe + fit/2)`` for GPS-like systems instead of the
        transmission-time derivation. Matches datasets produced with that
        convention (default: False)
    """
    toe_centered: bool = False


def fit_interval_hours(iodc: int, flag: int) -> float:
    """
    Resolve the curve fit interval from IODC and the fit interval flag

    Parameters
    ----------
    iodc : int
        Issue of data, clock (valid range 0-1023)
    flag : int
        Fit interval flag from subframe 2 (0 or 1)

    Returns
    -------
    float
        Fit interval in hours. Defined for every integer input.

    Notes
    -----
    Flag 0 means 4 hours, except that an IODC whose low byte lies in
    240-255 is resolved with the flag 1 table. Flag 1 bands:

    ==================================  =====
    IODC                                hours
    ==================================  =====
    low byte outside 240-255            6
    240-247                             8
    248-255, 496                        14
    497-503, 1021-1023                  26
    504-510                             50
    511, 752-756                        74
    757-763                             98
    764-767, 1008-1010                  122
    1011-1020                           146
    ==================================  =====
    """
    iodc = int(iodc)
    if iodc < 0 or iodc > 1023:
        return MIN_FIT_INTERVAL

    low_byte = iodc & 0xFF
    in_upper_band = 240 <= low_byte <= 255

    if flag == 0:
        if not in_upper_band:
            return MIN_FIT_INTERVAL
    elif flag != 1:
        return MIN_FIT_INTERVAL

    if not in_upper_band:
        return 6.0
    if 240 <= iodc <= 247:
        return 8.0
    if 248 <= iodc <= 255 or iodc == 496:
        return 14.0
    if 497 <= iodc <= 503 or 1021 <= iodc <= 1023:
        return 26.0
    if 504 <= iodc <= 510:
        return 50.0
    if iodc == 511 or 752 <= iodc <= 756:
        return 74.0
    if 757 <= iodc <= 763:
        return 98.0
    if 764 <= iodc <= 767 or 1008 <= iodc <= 1010:
        return 122.0
    if 1011 <= iodc <= 1020:
        return 146.0
    return MIN_FIT_INTERVAL


def _gps_window(toc: GNSSTime, toe: GNSSTime, transmit: Optional[GNSSTime],
                fit_hours: float, config: ValidityConfig) -> Tuple[GNSSTime, GNSSTime]:
    half = fit_hours * SECONDS_PER_HOUR / 2.0
    tag = toe.time_sys

    if config.toe_centered:
        return toe.copy(), toe + half

    # Off-cadence Toc: upload cutover, so the data is only provably in use
    # from its (subframe-aligned) transmission time
    if toc.tow % TOC_CUTOVER_PERIOD != 0 and transmit is not None:
        begin = GNSSTime(transmit.week, transmit.tow - transmit.tow % FRAME_PERIOD, tag)
    else:
        begin = toe - half

    end_week = toe.week
    end_sow = toe.tow
    remainder = end_sow % SECONDS_PER_HOUR
    if remainder:
        end_sow += SECONDS_PER_HOUR - remainder
    end_sow += half
    if end_sow >= SECONDS_PER_WEEK:
        end_sow -= SECONDS_PER_WEEK
        end_week += 1
    return begin, GNSSTime(end_week, end_sow, tag)


def compute_validity_window(model, config: Optional[ValidityConfig] = None
                            ) -> Tuple[GNSSTime, GNSSTime]:
    """
    Derive the half-open validity window ``[begin, end)`` of a model

    Parameters
    ----------
    model : EphemerisModel
        Any ephemeris variant; reads ``sat``, ``toc``, ``toe``,
        ``transmit_time`` and, for GPS-like systems, ``fit_interval``
    config : ValidityConfig, optional
        Window conventions

    Returns
    -------
    tuple of GNSSTime
        ``(begin_valid, end_valid)`` tagged like the model's Toe

    Notes
    -----
    GPS, legacy GPS and QZSS use the fit interval algorithm; Galileo spans
    ``[transmission, Toe + 4 h)``, BeiDou ``[transmission, Toe + 1 h)`` and
    GLONASS ``[Toe - 15 min, Toe + 15 min)``. A window that would come out
    empty falls back to ``begin = Toe - fit/2`` and logs a warning.
    """
    config = config or ValidityConfig()
    system = model.sat.system
    toe = model.toe
    transmit = model.transmit_time

    if system in (SYS_GPS, SYS_QZS):
        fit_hours = model.fit_interval
        begin, end = _gps_window(model.toc, toe, transmit, fit_hours, config)
    elif system == SYS_GAL:
        fit_hours = 2 * GAL_VALIDITY / SECONDS_PER_HOUR
        begin = transmit.copy() if transmit is not None else toe.copy()
        end = toe + GAL_VALIDITY
    elif system == SYS_BDS:
        fit_hours = 2 * BDS_VALIDITY / SECONDS_PER_HOUR
        begin = transmit.copy() if transmit is not None else toe.copy()
        end = toe + BDS_VALIDITY
    elif system == SYS_GLO:
        fit_hours = 2 * GLO_HALF_VALIDITY / SECONDS_PER_HOUR
        begin = toe - GLO_HALF_VALIDITY
        end = toe + GLO_HALF_VALIDITY
    else:
        raise ValueError(f"No validity rule for satellite {model.sat}")

    if end <= begin:
        fallback = toe - fit_hours * SECONDS_PER_HOUR / 2.0
        logger.warning("Empty validity window for %s (begin %s, end %s); using Toe - %.1f h",
                       model.sat, begin, end, fit_hours / 2.0)
        begin = fallback

    return begin, end
