"""Tests for ephemeris models"""

import io
import unittest

import numpy as np
import pytest

from pynav.core.constants import SYS_GAL, SYS_GLO, SYS_GPS
from pynav.core.data_structures import SatID
from pynav.core.errors import DataNotLoaded, TypeMismatch
from pynav.core.time import GNSSTime
from pynav.io.rinex_nav import CodecConfig, NavRecordCodec
from pynav.io.stream import FormattedRecordStream
from pynav.satellite.conversion import convert
from pynav.satellite.ephemeris import (EphKind, GalileoEphemeris,
                                       GLONASSEphemeris, GPSEphemeris,
                                       LegacyGPSEphemeris, model_from_record)


def through_text(model, version=3.04, system_hint=None):
    """Encode ``model`` as RINEX text and decode it back"""
    buffer = io.StringIO()
    writer = FormattedRecordStream()
    writer.attach(buffer, '<memory>')
    NavRecordCodec(writer, CodecConfig(version=version)).write(model.to_record(version))

    reader = FormattedRecordStream.from_string(buffer.getvalue())
    record = NavRecordCodec(reader, CodecConfig(version=version)).decode(system_hint)
    return model_from_record(record)


def assert_models_close(expected, actual):
    assert actual.kind == expected.kind
    want, got = expected.to_dict(), actual.to_dict()
    assert want.keys() == got.keys()
    for key, value in want.items():
        if isinstance(value, float):
            assert got[key] == pytest.approx(value, rel=1e-11, abs=0.0), key
        else:
            assert got[key] == value, key


@pytest.mark.parametrize("fixture", [
    'gps_model', 'qzss_model', 'galileo_model', 'beidou_model', 'glonass_model',
])
def test_round_trip_rinex3(fixture, request):
    model = request.getfixturevalue(fixture)
    model.compute_validity()
    assert_models_close(model, through_text(model))


def test_round_trip_legacy_gps(legacy_gps_model):
    legacy_gps_model.compute_validity()
    decoded = through_text(legacy_gps_model)
    assert decoded.kind == EphKind.GPS
    assert_models_close(legacy_gps_model, convert(decoded, EphKind.LEGACY_GPS))


def test_round_trip_rinex2_gps(gps_model):
    gps_model.compute_validity()
    assert_models_close(gps_model, through_text(gps_model, version=2.11))


def test_round_trip_rinex2_glonass(glonass_model):
    glonass_model.compute_validity()
    assert_models_close(glonass_model, through_text(glonass_model, version=2.11,
                                                    system_hint=SYS_GLO))


def test_round_trip_rinex305_glonass_extra_line(glonass_model):
    glonass_model.status_flags = 1.0
    glonass_model.urai = 2.0
    glonass_model.compute_validity()
    record = glonass_model.to_record(3.05)
    assert len(record.orbit) == 16
    assert_models_close(glonass_model, through_text(glonass_model, version=3.05))


class TestCapabilities(unittest.TestCase):
    """Clock, health and validity capabilities"""

    def setUp(self):
        self.model = GPSEphemeris(
            sat=SatID(SYS_GPS, 5),
            toc=GNSSTime(2086, 266400.0, 'GPS'),
            af0=1.0e-4, af1=2.0e-11, af2=1.0e-18,
            transmit_time=GNSSTime(2086, 259230.0, 'GPS'),
        )

    def test_toe_defaults_to_toc(self):
        self.assertEqual(self.model.toe, self.model.toc)

    def test_clock_bias(self):
        t = self.model.toc + 100.0
        expected = 1.0e-4 + 2.0e-11 * 100.0 + 1.0e-18 * 100.0 ** 2
        self.assertAlmostEqual(self.model.clock_bias(t), expected, places=18)

    def test_clock_drift(self):
        t = self.model.toc - 50.0
        self.assertAlmostEqual(self.model.clock_drift(t), 2.0e-11 - 2.0 * 1.0e-18 * 50.0, places=20)

    def test_clock_rejects_other_time_scale(self):
        with self.assertRaises(ValueError):
            self.model.clock_bias(GNSSTime(2086, 266400.0, 'GAL'))

    def test_health(self):
        self.assertTrue(self.model.is_healthy())
        self.model.health = 1
        self.assertFalse(self.model.is_healthy())

    def test_validity_before_computation(self):
        with self.assertRaises(DataNotLoaded):
            _ = self.model.begin_valid
        with self.assertRaises(DataNotLoaded):
            self.model.is_valid(self.model.toc)

    def test_validity_computed_once(self):
        first = self.model.compute_validity()
        self.model.fit_interval = 146.0
        self.assertEqual(self.model.compute_validity(), first)


def test_glonass_clock_sign(glonass_model):
    assert glonass_model.tau_n == pytest.approx(3.427453339100e-05)
    t = glonass_model.toc + 60.0
    expected = -glonass_model.tau_n + glonass_model.gamma_n * 60.0
    assert glonass_model.clock_bias(t) == pytest.approx(expected, rel=1e-15)


def test_glonass_vectors_are_arrays():
    model = GLONASSEphemeris(sat=SatID(SYS_GLO, 1), toc=GNSSTime(2086, 900.0, 'UTC'),
                             position=[1.0, 2.0, 3.0])
    assert isinstance(model.position, np.ndarray)
    with pytest.raises(ValueError):
        GLONASSEphemeris(sat=SatID(SYS_GLO, 1), toc=GNSSTime(2086, 900.0, 'UTC'),
                         velocity=[1.0, 2.0])


def test_ordering_by_epoch_then_satellite(gps_model, galileo_model, beidou_model, glonass_model):
    ordered = sorted([glonass_model, galileo_model, beidou_model, gps_model])
    # GPS and BeiDou share week/tow across time scales: satellite decides
    assert ordered == [gps_model, beidou_model, galileo_model, glonass_model]


def test_variant_must_match_satellite_system():
    with pytest.raises(TypeMismatch):
        GPSEphemeris(sat=SatID(SYS_GAL, 11), toc=GNSSTime(2086, 0.0, 'GPS'))


def test_record_of_other_system_is_rejected(gps_model):
    record = gps_model.to_record()
    with pytest.raises(TypeMismatch):
        GalileoEphemeris.from_record(record)


class TestConvert(unittest.TestCase):
    """Variant relabeling"""

    def setUp(self):
        self.gps = GPSEphemeris(
            sat=SatID(SYS_GPS, 7),
            toc=GNSSTime(2086, 266400.0, 'GPS'),
            transmit_time=GNSSTime(2086, 259245.0, 'GPS'),
            iodc=240, fit_interval=8.0, sqrt_a=5153.6,
        )
        self.gps.compute_validity()

    def test_gps_to_legacy_and_back(self):
        legacy = convert(self.gps, EphKind.LEGACY_GPS)
        self.assertIsInstance(legacy, LegacyGPSEphemeris)
        self.assertEqual(legacy.kind, EphKind.LEGACY_GPS)
        self.assertEqual(legacy.begin_valid, self.gps.begin_valid)
        self.assertEqual(legacy.end_valid, self.gps.end_valid)
        self.assertEqual(legacy.fit_flag, 1)
        self.assertEqual(legacy.how_time, 259230.0)

        back = convert(legacy, EphKind.GPS)
        self.assertEqual(back.to_dict(), self.gps.to_dict())

    def test_identity(self):
        self.assertIs(convert(self.gps, EphKind.GPS), self.gps)

    def test_cross_constellation_fails(self):
        for kind in (EphKind.GALILEO, EphKind.BEIDOU, EphKind.QZSS, EphKind.GLONASS):
            with self.assertRaises(TypeMismatch):
                convert(self.gps, kind)


def test_glonass_cannot_become_gps(glonass_model):
    with pytest.raises(TypeMismatch):
        convert(glonass_model, EphKind.GPS)


def test_model_from_record_legacy_flag(gps_model):
    record = gps_model.to_record()
    model = model_from_record(record, legacy=True)
    assert isinstance(model, LegacyGPSEphemeris)
    assert model.has_validity


def test_unknown_transmission_time_round_trips(gps_model):
    gps_model.transmit_time = None
    record = gps_model.to_record()
    assert record['TransTime'] == pytest.approx(9.999e8)
    assert model_from_record(record).transmit_time is None
