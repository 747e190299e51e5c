########################################################################
# File name: external.py
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


class _State(enum.Enum):
    NOT_STARTED = "not-started"
    DONE = "done"


class EXTERNAL(statemachine.Client):
    """
    The EXTERNAL SASL mechanism (see :rfc:`4422`, appendix A).

    The client is authenticated by means outside of SASL, typically a TLS
    client certificate. `identity` is the authorization identity to act
    as; leave it empty to act as the identity associated with the external
    credentials.
    """

    name = "EXTERNAL"

    def __init__(self, identity: str = "") -> None:
        super().__init__()
        self._identity = identity.encode("utf-8")

    def start(self) -> typing.Tuple[str, typing.Optional[bytes]]:
        return self.name, self._identity

    def next(self, challenge: bytes) -> bytes:
        raise common.UnexpectedServerChallenge()


class EXTERNALServer(statemachine.Server):
    """
    Server side of the EXTERNAL mechanism.

    `authenticator` is called with the requested authorization identity,
    which is empty if the client wants to act as the identity established
    externally. If the server does not allow the client to assume a
    non-empty identity, `authenticator` must raise a
    :class:`~.SASLError`; the error is propagated to the caller of
    :meth:`next`.
    """

    name = "EXTERNAL"

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

        if response is None:
            return b"", False

        self._state = _State.DONE

        if b"\0" in response:
            logger.debug("rejecting EXTERNAL identity with NUL byte")
            raise common.SASLFailure(
                None,
                text="identity contains a NUL character")

        self._authenticator(utils.decode_utf8(response, "identity"))
        return b"", True
