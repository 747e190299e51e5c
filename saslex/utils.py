########################################################################
# File name: utils.py
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
from . import common


def decode_utf8(value: bytes, what: str) -> str:
    """
    Decode `value` as UTF-8.

    Invalid input is a protocol violation and raises :class:`SASLFailure`
    naming the field `what`.
    """
    try:
        return value.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise common.SASLFailure(
            None,
            text="malformed {}: {}".format(what, exc),
        ) from None
