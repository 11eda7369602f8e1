"""Shared ephemeris fixtures"""

import numpy as np
import pytest

from pynav.core.data_structures import SatID
from pynav.core.constants import SYS_BDS, SYS_GAL, SYS_GLO, SYS_GPS, SYS_QZS
from pynav.core.time import GNSSTime
from pynav.satellite.ephemeris import (BeiDouEphemeris, GalileoEphemeris,
                                       GLONASSEphemeris, GPSEphemeris,
                                       LegacyGPSEphemeris, QZSSEphemeris)

# 2020-01-01 02:00:00, GPS week 2086
WEEK = 2086
TOW = 266400.0

KEPLER = dict(
    sqrt_a=5153.612358093,
    e=0.01152145711239,
    i0=0.9626734513244,
    omega0=-2.146354627609,
    omega=0.7237634182721,
    m0=1.318287453612,
    delta_n=4.467686399613e-09,
    omega_dot=-8.066408879553e-09,
    idot=-2.346526435815e-10,
    cuc=-3.021582961082e-06,
    cus=8.586794137955e-06,
    crc=224.53125,
    crs=-57.96875,
    cic=1.490116119385e-08,
    cis=-9.313225746155e-08,
)


def _gps_like(cls, system, prn, tag):
    return cls(
        sat=SatID(system, prn),
        toc=GNSSTime(WEEK, TOW, tag),
        af0=-1.234567890123e-04,
        af1=-3.410605131648e-12,
        af2=0.0,
        toe=GNSSTime(WEEK, TOW, tag),
        transmit_time=GNSSTime(WEEK, TOW - 7170.0, tag),
        health=0,
        accuracy=2.0,
        iode=37,
        iodc=37,
        tgd=-1.117587089539e-08,
        codes_l2=1,
        l2p_flag=0,
        fit_interval=2.0 if system == SYS_QZS else 4.0,
        **KEPLER,
    )


@pytest.fixture
def gps_model():
    return _gps_like(GPSEphemeris, SYS_GPS, 5, 'GPS')


@pytest.fixture
def legacy_gps_model():
    return _gps_like(LegacyGPSEphemeris, SYS_GPS, 5, 'GPS')


@pytest.fixture
def qzss_model():
    return _gps_like(QZSSEphemeris, SYS_QZS, 1, 'QZS')


@pytest.fixture
def galileo_model():
    return GalileoEphemeris(
        sat=SatID(SYS_GAL, 11),
        toc=GNSSTime(WEEK, TOW + 600.0, 'GAL'),
        af0=-6.021680682898e-04,
        af1=-8.398615255998e-12,
        af2=0.0,
        toe=GNSSTime(WEEK, TOW + 600.0, 'GAL'),
        transmit_time=GNSSTime(WEEK, TOW - 5.0, 'GAL'),
        health=0,
        accuracy=3.12,
        iodnav=97,
        data_sources=517,
        bgd_e5a=-5.587935447693e-09,
        bgd_e5b=-6.053596735001e-09,
        **KEPLER,
    )


@pytest.fixture
def beidou_model():
    return BeiDouEphemeris(
        sat=SatID(SYS_BDS, 30),
        toc=GNSSTime(WEEK, TOW, 'BDS'),
        af0=2.719003334641e-04,
        af1=4.729550084903e-13,
        af2=0.0,
        toe=GNSSTime(WEEK, TOW, 'BDS'),
        transmit_time=GNSSTime(WEEK, TOW - 1.0, 'BDS'),
        health=0,
        accuracy=2.0,
        aode=1,
        aodc=1,
        tgd1=1.4e-09,
        tgd2=-3.1e-09,
        **KEPLER,
    )


@pytest.fixture
def glonass_model():
    return GLONASSEphemeris(
        sat=SatID(SYS_GLO, 12),
        toc=GNSSTime(WEEK, TOW + 900.0, 'UTC'),
        af0=-3.427453339100e-05,
        af1=9.094947017729e-13,
        health=0,
        position=np.array([-14262138.18359, 6358046.386719, 20416870.60547]),
        velocity=np.array([-1417.636871338, -2937.145233154, -80.68466186523]),
        acceleration=np.array([-2.793967723846e-06, 0.0, -1.862645149231e-06]),
        freq_num=-1,
        age=0.0,
        frame_time=264630.0,
    )
