########################################################################
# File name: stringprep.py
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
"""
Stringprep support
==================

Only what the mechanisms need is implemented here: the ``trace`` profile of
:rfc:`4505` and the bidirectional character check of :rfc:`3454` it
relies on.

.. autofunction:: trace

.. autofunction:: check_bidi
"""
import stringprep
import typing

from unicodedata import ucd_3_2_0 as unicodedata


_TRACE_PROHIBITED = (
    stringprep.in_table_c21,
    stringprep.in_table_c22,
    stringprep.in_table_c3,
    stringprep.in_table_c4,
    stringprep.in_table_c5,
    stringprep.in_table_c6,
    stringprep.in_table_c8,
    stringprep.in_table_c9,
)


def is_RandALCat(c: str) -> bool:
    return unicodedata.bidirectional(c) in ("R", "AL")


def is_LCat(c: str) -> bool:
    return unicodedata.bidirectional(c) == "L"


def check_prohibited_output(
        chars: str,
        bad_tables: typing.Iterable[typing.Callable[[str], bool]]) -> None:
    """
    Raise :class:`ValueError` if any character of `chars` is contained in
    one of `bad_tables`.
    """
    bad_tables = tuple(bad_tables)
    for i, c in enumerate(chars):
        if any(in_table(c) for in_table in bad_tables):
            raise ValueError(
                "prohibited character {!r} at position {}".format(c, i))


def check_bidi(chars: str) -> None:
    """
    Check proper bidirectionality as per stringprep. Operates on a string of
    characters and raises :class:`ValueError` on violation.
    """
    if not chars:
        return

    has_RandALCat = any(is_RandALCat(c) for c in chars)
    if not has_RandALCat:
        return

    if any(is_LCat(c) for c in chars):
        raise ValueError("L and R/AL characters must not occur in the same"
                         " string")

    if not is_RandALCat(chars[0]) or not is_RandALCat(chars[-1]):
        raise ValueError("R/AL string must start and end with R/AL character.")


def trace(string: str) -> str:
    """
    Implement the ``trace`` profile specified in :rfc:`4505`.

    The profile neither maps nor normalises, so the input is returned
    unchanged if it is acceptable.
    """
    check_prohibited_output(string, _TRACE_PROHIBITED)
    check_bidi(string)

    return string
