"""Tests for cssrlib interoperability"""

import numpy as np
import pytest
from cssrlib.gnss import Eph, Geph, sat2prn, time2gpst, uGNSS

from pynav.core.errors import TypeMismatch
from pynav.satellite.conversion import from_cssrlib, to_cssrlib
from pynav.satellite.ephemeris import (EphKind, GalileoEphemeris,
                                       LegacyGPSEphemeris)


def test_gps_to_cssrlib(gps_model):
    eph = to_cssrlib(gps_model)
    assert isinstance(eph, Eph)
    assert sat2prn(eph.sat) == (uGNSS.GPS, 5)
    assert eph.A == pytest.approx(gps_model.sqrt_a ** 2)
    assert eph.OMG0 == gps_model.omega0
    assert eph.deln == gps_model.delta_n
    assert eph.week == 2086
    assert eph.toes == gps_model.toe.tow
    week, tow = time2gpst(eph.toe)
    assert (week, tow) == (2086, pytest.approx(gps_model.toe.tow))
    assert eph.fit == 4.0


def test_gps_from_cssrlib_round_trip(gps_model):
    model = from_cssrlib(to_cssrlib(gps_model))
    assert model.kind == EphKind.GPS
    assert model.sat == gps_model.sat
    assert model.toc == gps_model.toc
    assert model.toe == gps_model.toe
    assert model.transmit_time.to_gps_seconds() == pytest.approx(
        gps_model.transmit_time.to_gps_seconds())
    assert model.sqrt_a == pytest.approx(gps_model.sqrt_a, rel=1e-15)
    for name in ('e', 'i0', 'omega', 'm0', 'idot', 'cuc', 'cis', 'crs'):
        assert getattr(model, name) == getattr(gps_model, name), name
    assert (model.iode, model.iodc, model.tgd) == (gps_model.iode, gps_model.iodc, gps_model.tgd)
    assert model.fit_interval == gps_model.fit_interval


def test_legacy_from_cssrlib(gps_model):
    model = from_cssrlib(to_cssrlib(gps_model), legacy=True)
    assert isinstance(model, LegacyGPSEphemeris)


def test_qzss_numbering(qzss_model):
    eph = to_cssrlib(qzss_model)
    assert sat2prn(eph.sat) == (uGNSS.QZS, 193)
    model = from_cssrlib(eph)
    assert model.kind == EphKind.QZSS
    assert model.sat == qzss_model.sat


def test_galileo_biases(galileo_model):
    eph = to_cssrlib(galileo_model)
    assert eph.tgd == galileo_model.bgd_e5a
    assert eph.tgd_b == galileo_model.bgd_e5b
    model = from_cssrlib(eph)
    assert model.kind == EphKind.GALILEO
    assert model.data_sources == galileo_model.data_sources
    assert model.toe == galileo_model.toe


def test_beidou_times_go_through_gpst(beidou_model):
    eph = to_cssrlib(beidou_model)
    assert eph.week == 2086 - 1356
    _, tow = time2gpst(eph.toe)
    # BDT is 14 s behind GPST
    assert tow == pytest.approx(beidou_model.toe.tow + 14.0)
    model = from_cssrlib(eph)
    assert model.toe.time_sys == 'BDS'
    assert model.toe.to_gps_seconds() == pytest.approx(beidou_model.toe.to_gps_seconds())


def test_glonass_round_trip(glonass_model):
    geph = to_cssrlib(glonass_model)
    assert isinstance(geph, Geph)
    assert geph.taun == pytest.approx(glonass_model.tau_n)
    assert geph.gamn == glonass_model.gamma_n
    np.testing.assert_allclose(geph.pos, glonass_model.position)
    _, tow = time2gpst(geph.toe)
    # UTC to GPST: leap seconds
    assert tow - glonass_model.toc.tow == pytest.approx(18.0)

    model = from_cssrlib(geph)
    assert model.kind == EphKind.GLONASS
    assert model.toc.to_gps_seconds() == pytest.approx(glonass_model.toc.to_gps_seconds())
    assert model.frame_time == pytest.approx(glonass_model.frame_time)
    np.testing.assert_allclose(model.velocity, glonass_model.velocity)
    assert model.freq_num == -1


def test_wrong_constellation_is_rejected(gps_model):
    with pytest.raises(TypeMismatch):
        GalileoEphemeris.from_cssrlib(to_cssrlib(gps_model))
