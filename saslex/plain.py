########################################################################
# File name: plain.py
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
import enum
import logging
import typing

from . import common, statemachine, utils


logger = logging.getLogger(__name__)


_FIELDS = ("identity", "username", "password")


class _State(enum.Enum):
    NOT_STARTED = "not-started"
    DONE = "done"


class PLAIN(statemachine.Client):
    """
    The password-based ``PLAIN`` SASL mechanism (see :rfc:`4616`).

    .. warning::

       This is generally unsafe over unencrypted connections and should not be
       used there. Exclusion of the ``PLAIN`` mechanism over unsafe connections
       is out of scope for :mod:`saslex` and needs to be handled by the
       protocol implementation!

    `identity` is the authorization identity; if it is empty, the server
    derives it from `username`. None of the strings may contain a NUL
    character, otherwise :class:`ValueError` is raised.
    """

    name = "PLAIN"

    def __init__(
            self,
            username: str,
            password: str,
            identity: str = "") -> None:
        super().__init__()
        fields = [
            value.encode("utf-8")
            for value in (identity, username, password)
        ]

        if any(b"\0" in field for field in fields):
            raise ValueError(
                "NUL byte in identity, username or password is disallowed")

        self._message = b"\0".join(fields)

    def start(self) -> typing.Tuple[str, typing.Optional[bytes]]:
        return self.name, self._message

    def next(self, challenge: bytes) -> bytes:
        raise common.UnexpectedServerChallenge()


class PLAINServer(statemachine.Server):
    """
    Server side of the PLAIN mechanism.

    `authenticator` is called with ``(identity, username, password)`` and
    raises a :class:`~.SASLError` to reject the credentials. `identity` is
    empty if the client wants to act as `username`; if it is not and the
    server does not support acting as somebody else, `authenticator` must
    raise.

    Anything following the password is ignored.
    """

    name = "PLAIN"

    def __init__(self, authenticator: common.PlainAuthenticator) -> None:
        super().__init__()
        self._authenticator = authenticator
        self._state = _State.NOT_STARTED

    def next(
            self,
            response: typing.Optional[bytes],
            ) -> common.ServerStep:
        if self._state == _State.DONE:
            raise common.UnexpectedClientResponse()

        if response is None:
            return b"", False

        self._state = _State.DONE

        fields = response.split(b"\0")
        if len(fields) < len(_FIELDS):
            logger.debug("malformed PLAIN response: %d field(s)",
                         len(fields))
            raise common.SASLFailure(
                None,
                text="sasl: missing {}".format(_FIELDS[len(fields)]))

        # zip() drops whatever follows the third field
        identity, username, password = (
            utils.decode_utf8(value, what)
            for value, what in zip(fields, _FIELDS)
        )

        self._authenticator(identity, username, password)
        return b"", True
