"""Tests for the fit interval table and validity windows"""

import logging
import unittest

import pytest

from pynav.core.constants import SYS_GPS
from pynav.core.data_structures import SatID
from pynav.core.time import GNSSTime
from pynav.satellite.ephemeris import GPSEphemeris
from pynav.satellite.validity import (ValidityConfig, compute_validity_window,
                                      fit_interval_hours)


class TestFitIntervalHours(unittest.TestCase):
    """Fit interval lookup"""

    def test_flag_zero_nominal(self):
        self.assertEqual(fit_interval_hours(0, 0), 4)
        self.assertEqual(fit_interval_hours(239, 0), 4)
        self.assertEqual(fit_interval_hours(1000, 0), 4)

    def test_flag_zero_upper_band_uses_table(self):
        self.assertEqual(fit_interval_hours(240, 0), 8)
        self.assertEqual(fit_interval_hours(255, 0), 14)
        self.assertEqual(fit_interval_hours(511, 0), 74)

    def test_flag_one_band_boundaries(self):
        self.assertEqual(fit_interval_hours(239, 1), 6)
        self.assertEqual(fit_interval_hours(240, 1), 8)
        self.assertEqual(fit_interval_hours(247, 1), 8)
        self.assertEqual(fit_interval_hours(248, 1), 14)
        self.assertEqual(fit_interval_hours(496, 1), 14)
        self.assertEqual(fit_interval_hours(497, 1), 26)
        self.assertEqual(fit_interval_hours(503, 1), 26)
        self.assertEqual(fit_interval_hours(504, 1), 50)
        self.assertEqual(fit_interval_hours(510, 1), 50)
        self.assertEqual(fit_interval_hours(511, 1), 74)
        self.assertEqual(fit_interval_hours(752, 1), 74)
        self.assertEqual(fit_interval_hours(756, 1), 74)
        self.assertEqual(fit_interval_hours(757, 1), 98)
        self.assertEqual(fit_interval_hours(763, 1), 98)
        self.assertEqual(fit_interval_hours(764, 1), 122)
        self.assertEqual(fit_interval_hours(1008, 1), 122)
        self.assertEqual(fit_interval_hours(1011, 1), 146)
        self.assertEqual(fit_interval_hours(1020, 1), 146)
        self.assertEqual(fit_interval_hours(1021, 1), 26)
        self.assertEqual(fit_interval_hours(1023, 1), 26)

    def test_out_of_range_iodc(self):
        self.assertEqual(fit_interval_hours(1024, 1), 4)
        self.assertEqual(fit_interval_hours(1024, 0), 4)
        self.assertEqual(fit_interval_hours(-1, 1), 4)

    def test_unknown_flag(self):
        self.assertEqual(fit_interval_hours(240, 2), 4)
        self.assertEqual(fit_interval_hours(100, -1), 4)

    def test_result_is_float(self):
        for iodc, flag in ((0, 0), (240, 0), (239, 1), (511, 1), (1021, 1), (2000, 1), (240, 2)):
            self.assertIsInstance(fit_interval_hours(iodc, flag), float)


@pytest.mark.parametrize("iodc", range(-300, 1400, 7))
@pytest.mark.parametrize("flag", [-1, 0, 1, 2])
def test_fit_interval_is_total(iodc, flag):
    hours = fit_interval_hours(iodc, flag)
    assert hours in (4, 6, 8, 14, 26, 50, 74, 98, 122, 146)


def _gps(toc_tow, toe_tow, transmit_tow, fit=4.0, week=2086):
    return GPSEphemeris(
        sat=SatID(SYS_GPS, 5),
        toc=GNSSTime(week, toc_tow, 'GPS'),
        toe=GNSSTime(week, toe_tow, 'GPS'),
        transmit_time=GNSSTime(week, transmit_tow, 'GPS') if transmit_tow is not None else None,
        fit_interval=fit,
    )


class TestGPSWindow(unittest.TestCase):
    """GPS validity window derivation"""

    def test_nominal_cutover(self):
        model = _gps(266400.0, 266400.0, 259230.0)
        begin, end = compute_validity_window(model)
        self.assertEqual(begin, GNSSTime(2086, 259200.0, 'GPS'))
        self.assertEqual(end, GNSSTime(2086, 273600.0, 'GPS'))

    def test_upload_cutover_uses_transmission_time(self):
        # Toc 409904 is not a multiple of 7200
        model = _gps(409904.0, 409904.0, 406817.0)
        begin, end = compute_validity_window(model)
        self.assertEqual(begin, GNSSTime(2086, 406800.0, 'GPS'))
        # Toe rounded up to 410400, plus 2 h
        self.assertEqual(end, GNSSTime(2086, 417600.0, 'GPS'))

    def test_end_rolls_into_next_week(self):
        model = _gps(597600.0, 604000.0, 597600.0)
        begin, end = compute_validity_window(model)
        self.assertEqual(end.week, 2087)
        self.assertEqual(end.tow, 7200.0)
        self.assertEqual(begin, GNSSTime(2086, 604000.0 - 7200.0, 'GPS'))

    def test_longer_fit_interval(self):
        model = _gps(266400.0, 266400.0, 259200.0, fit=6.0)
        begin, end = compute_validity_window(model)
        self.assertEqual(begin, GNSSTime(2086, 266400.0 - 10800.0, 'GPS'))
        self.assertEqual(end, GNSSTime(2086, 266400.0 + 10800.0, 'GPS'))

    def test_toe_centered_override(self):
        model = _gps(409904.0, 409904.0, 406817.0)
        begin, end = compute_validity_window(model, ValidityConfig(toe_centered=True))
        self.assertEqual(begin, GNSSTime(2086, 409904.0, 'GPS'))
        self.assertEqual(end, GNSSTime(2086, 409904.0 + 7200.0, 'GPS'))

    def test_missing_transmission_time(self):
        model = _gps(409904.0, 409904.0, None)
        begin, _ = compute_validity_window(model)
        self.assertEqual(begin, GNSSTime(2086, 409904.0 - 7200.0, 'GPS'))


def test_empty_window_falls_back_with_warning(caplog):
    # transmission after the end of the fit interval
    model = _gps(409904.0, 409904.0, 500000.0)
    with caplog.at_level(logging.WARNING, logger='pynav.satellite.validity'):
        begin, end = compute_validity_window(model)
    assert begin == GNSSTime(2086, 409904.0 - 7200.0, 'GPS')
    assert end > begin
    assert 'Empty validity window' in caplog.text


def test_other_system_windows(galileo_model, beidou_model, glonass_model):
    begin, end = compute_validity_window(galileo_model)
    assert begin == galileo_model.transmit_time
    assert end - galileo_model.toe == 4 * 3600

    begin, end = compute_validity_window(beidou_model)
    assert begin == beidou_model.transmit_time
    assert end - beidou_model.toe == 3600

    begin, end = compute_validity_window(glonass_model)
    assert glonass_model.toe - begin == 900
    assert end - glonass_model.toe == 900


def test_qzss_uses_gps_algorithm(qzss_model):
    begin, end = compute_validity_window(qzss_model)
    # 2 h fit interval, Toc on the 2 h cadence
    assert begin == qzss_model.toe - 3600.0
    assert end == qzss_model.toe + 3600.0
    assert end.time_sys == 'QZS'


def test_window_is_half_open(gps_model):
    begin, end = gps_model.compute_validity()
    assert gps_model.is_valid(begin)
    assert gps_model.is_valid(end - 1e-3)
    assert not gps_model.is_valid(end)
    assert not gps_model.is_valid(begin - 1e-3)
