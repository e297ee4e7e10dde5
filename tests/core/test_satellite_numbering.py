#!/usr/bin/env python3
"""Test suite for constellation metadata"""

import unittest

import pytest

from pymultipath.core.constants import SYS_GAL, SYS_GPS, SYS_NONE
from pymultipath.core.satellite_numbering import (get_sat_list, get_sys_name, parse_sat_name,
                                                  prn_to_sat, sat_name, sat_to_char, sat_to_prn,
                                                  sat_to_sys, sort_systems)


class TestSatelliteNumbering(unittest.TestCase):
    """Test unified satellite numbers"""

    def test_prn_to_sat(self):
        self.assertEqual(prn_to_sat('G', 1), 1)
        self.assertEqual(prn_to_sat('R', 1), 65)
        self.assertEqual(prn_to_sat('E', 1), 97)
        self.assertEqual(prn_to_sat('C', 1), 141)
        self.assertEqual(prn_to_sat('J', 1), 210)
        self.assertEqual(prn_to_sat('S', 120), 33)
        self.assertEqual(prn_to_sat('I', 1), 230)

    def test_invalid_prn(self):
        self.assertEqual(prn_to_sat('G', 0), 0)
        self.assertEqual(prn_to_sat('G', 33), 0)
        self.assertEqual(prn_to_sat('X', 1), 0)

    def test_round_trip(self):
        for sys_c in 'GRECJSI':
            for sat in get_sat_list(sys_c):
                self.assertEqual(prn_to_sat(sys_c, sat_to_prn(sat)), sat)
                self.assertEqual(sat_to_char(sat), sys_c)

    def test_sat_to_sys(self):
        self.assertEqual(sat_to_sys(5), SYS_GPS)
        self.assertEqual(sat_to_sys(100), SYS_GAL)
        self.assertEqual(sat_to_sys(300), SYS_NONE)

    def test_names(self):
        self.assertEqual(sat_name(1), 'G01')
        self.assertEqual(sat_name(prn_to_sat('E', 11)), 'E11')
        self.assertEqual(sat_name(prn_to_sat('S', 120)), 'S120')
        self.assertEqual(sat_name(0), '')
        self.assertEqual(get_sys_name('C'), 'BeiDou')
        self.assertEqual(get_sys_name('X'), 'Unknown')


@pytest.mark.parametrize("name, expected", [
    ('G01', ('G', 1)),
    ('E36', ('E', 36)),
    ('S120', ('S', 120)),
])
def test_parse_sat_name(name, expected):
    assert parse_sat_name(name) == expected


@pytest.mark.parametrize("name", ['', 'G', 'X01', 'GAB'])
def test_parse_sat_name_invalid(name):
    with pytest.raises(ValueError):
        parse_sat_name(name)


def test_sort_systems():
    assert sort_systems('ECGX') == ['G', 'E', 'C']
    assert sort_systems([]) == []


if __name__ == '__main__':
    unittest.main()
