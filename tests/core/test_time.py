#!/usr/bin/env python3
"""Test suite for GNSS time handling"""

import unittest
from datetime import datetime

import pytest
from cssrlib.gnss import time2gpst

from pynav.core.time import GNSSTime, from_gtime, to_gtime


class TestGNSSTime(unittest.TestCase):
    """Test GNSSTime arithmetic and ordering"""

    def test_normalization(self):
        t = GNSSTime(2086, -1.0)
        self.assertEqual((t.week, t.tow), (2085, 604799.0))
        t = GNSSTime(2086, 604800.0 + 7200.0)
        self.assertEqual((t.week, t.tow), (2087, 7200.0))

    def test_invalid_system(self):
        with self.assertRaises(ValueError):
            GNSSTime(2086, 0.0, 'TAI')

    def test_lowercase_system(self):
        self.assertEqual(GNSSTime(2086, 0.0, 'gal').time_sys, 'GAL')

    def test_difference(self):
        a = GNSSTime(2087, 100.0)
        b = GNSSTime(2086, 604700.0)
        self.assertEqual(a - b, 200.0)
        self.assertEqual(b + 200.0, a)
        self.assertEqual(a - 200.0, b)

    def test_mixed_systems_refused(self):
        gps = GNSSTime(2086, 100.0, 'GPS')
        gal = GNSSTime(2086, 100.0, 'GAL')
        with self.assertRaises(ValueError):
            gps - gal
        with self.assertRaises(ValueError):
            gps < gal
        self.assertNotEqual(gps, gal)

    def test_wildcard_compares_with_anything(self):
        gps = GNSSTime(2086, 100.0, 'GPS')
        any_time = GNSSTime(2086, 150.0, 'ANY')
        self.assertTrue(gps < any_time)
        self.assertEqual(any_time - gps, 50.0)
        self.assertEqual(gps, GNSSTime(2086, 100.0, 'ANY'))

    def test_add_rejects_time(self):
        with self.assertRaises(TypeError):
            GNSSTime(2086, 0.0) + GNSSTime(2086, 0.0)

    def test_not_hashable(self):
        with self.assertRaises(TypeError):
            hash(GNSSTime(2086, 0.0))

    def test_datetime_conversion(self):
        t = GNSSTime.from_datetime(datetime(1999, 9, 2, 17, 51, 44))
        self.assertEqual((t.week, t.tow), (1025, 409904.0))
        self.assertEqual(t.to_datetime(), datetime(1999, 9, 2, 17, 51, 44))

    def test_gps_seconds(self):
        t = GNSSTime(2086, 266400.0)
        self.assertEqual(GNSSTime.from_gps_seconds(t.to_gps_seconds()), t)


class TestTimeScales(unittest.TestCase):
    """Test conversion through cssrlib gtime_t"""

    def test_gps_is_identity(self):
        self.assertEqual(time2gpst(to_gtime(GNSSTime(2086, 266400.0))), (2086, 266400.0))

    def test_beidou_offset(self):
        week, tow = time2gpst(to_gtime(GNSSTime(2086, 266400.0, 'BDS')))
        self.assertEqual(week, 2086)
        self.assertAlmostEqual(tow, 266414.0, places=6)

    def test_utc_leap_seconds(self):
        _, tow = time2gpst(to_gtime(GNSSTime(2086, 266400.0, 'UTC')))
        self.assertAlmostEqual(tow, 266418.0, places=6)

    def test_glonass_system_time(self):
        _, tow = time2gpst(to_gtime(GNSSTime(2086, 266400.0, 'GLO')))
        self.assertAlmostEqual(tow, 266400.0 - 10800.0 + 18.0, places=6)


@pytest.mark.parametrize("time_sys", ['GPS', 'GAL', 'QZS', 'BDS', 'UTC', 'GLO'])
def test_gtime_inverse(time_sys):
    t = GNSSTime(2086, 266400.0, time_sys)
    back = from_gtime(to_gtime(t), time_sys)
    assert back.time_sys == time_sys
    assert back.week == t.week
    assert back.tow == pytest.approx(t.tow, abs=1e-6)


if __name__ == '__main__':
    unittest.main()
