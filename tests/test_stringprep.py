########################################################################
# File name: test_stringprep.py
# This file is part of: saslex
#
# LICENSE
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Lesser General Public License as
# published by the Free Software Foundation, either version 3 of the
# License, or (at your option) any later version.
#
# This program is distributed in the hope that it will be useful, but
# WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the GNU
# Lesser General Public License for more details.
#
# You should have received a copy of the GNU Lesser General Public
# License along with this program.  If not, see
# <http://www.gnu.org/licenses/>.
#
########################################################################
import unittest

from saslex.stringprep import (
    check_bidi,
    is_RandALCat,
    trace,
)


class Testcheck_bidi(unittest.TestCase):
    # some test cases which are not covered by the other tests
    def test_empty_string(self):
        check_bidi("")

    def test_L_RAL_violation(self):
        with self.assertRaises(ValueError):
            check_bidi("\u05beA")

    def test_RAL_must_surround_string(self):
        with self.assertRaises(ValueError):
            check_bidi("\u05be1")

    def test_RAL_only(self):
        check_bidi("\u05d0\u05d1")

    def test_uses_unicode_3_2_bidi_classes(self):
        # U+08A0 ARABIC LETTER BEH WITH SMALL V BELOW was added in Unicode
        # 6.1 as AL; in 3.2 it is unassigned and has no bidi class
        self.assertFalse(is_RandALCat("\u08a0"))
        check_bidi("a\u08a0")
        with self.assertRaisesRegex(ValueError, "must start and end"):
            check_bidi("\u05d0\u08a0")


class Testtrace(unittest.TestCase):
    def test_identity(self):
        self.assertEqual(
            "sirhc@example.com",
            trace("sirhc@example.com"),
            "trace requirement: no mapping")

    def test_no_mapping_to_nothing(self):
        self.assertEqual(
            "I\u00adX",
            trace("I\u00adX"),
            "trace requirement: SOFT HYPHEN is not mapped")

    def test_case_preservation(self):
        self.assertEqual("USER", trace("USER"))

    def test_prohibited_character(self):
        for c in ("\u0007", "\u007f", "\ue000", "\ufdd0", "\ud800",
                  "\ufffd", "\u200e", "\U000e0001"):
            with self.subTest(character=c):
                with self.assertRaisesRegex(ValueError, "prohibited"):
                    trace("a" + c)

    def test_space_is_allowed(self):
        self.assertEqual("a b", trace("a b"))

    def test_bidi_check(self):
        with self.assertRaises(ValueError):
            trace("\u06271")

    def test_bidi_check_uses_unicode_3_2(self):
        self.assertEqual("user\u08a0", trace("user\u08a0"))
        with self.assertRaises(ValueError):
            trace("\u05d0\u08a0")
