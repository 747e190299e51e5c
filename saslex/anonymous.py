########################################################################
# File name: anonymous.py
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

from . import common, statemachine, stringprep, utils


logger = logging.getLogger(__name__)


class _State(enum.Enum):
    NOT_STARTED = "not-started"
    DONE = "done"


class ANONYMOUS(statemachine.Client):
    """
    The ANONYMOUS SASL mechanism (see :rfc:`4505`).

    `token` is the trace information, for example an email address. It is
    checked against the ``trace`` stringprep profile; a prohibited
    character raises :class:`ValueError`.
    """

    name = "ANONYMOUS"

    def __init__(self, token: str) -> None:
        super().__init__()
        self._token = stringprep.trace(token).encode("utf-8")

    def start(self) -> typing.Tuple[str, typing.Optional[bytes]]:
        return self.name, self._token

    def next(self, challenge: bytes) -> bytes:
        raise common.UnexpectedServerChallenge()


class ANONYMOUSServer(statemachine.Server):
    """
    Server side of the ANONYMOUS mechanism.

    `authenticator` is called with the trace sent by the client. It may
    raise a :class:`~.SASLError` to refuse anonymous access; the error is
    propagated to the caller of :meth:`next`.
    """

    name = "ANONYMOUS"

    def __init__(self, authenticator: common.IdentityAuthenticator) -> None:
        super().__init__()
        self._authenticator = authenticator
        self._state = _State.NOT_STARTED

    def next(
            self,
            response: typing.Optional[bytes],
            ) -> common.ServerStep:
        if self._state == _State.DONE:
            raise common.UnexpectedClientResponse()

        # no initial response: solicit one with an empty challenge
        if response is None:
            return b"", False

        self._state = _State.DONE

        trace = utils.decode_utf8(response, "trace")
        logger.debug("anonymous login with trace %r", trace)
        self._authenticator(trace)
        return b"", True
