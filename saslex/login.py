########################################################################
# File name: login.py
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


USERNAME_PROMPT = b"Username:"
PASSWORD_PROMPT = b"Password:"


class _State(enum.Enum):
    NOT_STARTED = "not-started"
    WAITING_USERNAME = "waiting-username"
    WAITING_PASSWORD = "waiting-password"
    DONE = "done"


class LOGIN(statemachine.Client):
    """
    The legacy LOGIN SASL mechanism (see draft-murchison-sasl-login).

    .. warning::

       LOGIN is obsolete. Use :class:`~.PLAIN` unless the server offers
       nothing else. Like PLAIN, it sends the password in the clear and
       must only be used over an encrypted connection.

    The username is sent as initial response; the password is sent in
    reply to the ``Password:`` prompt.
    """

    name = "LOGIN"

    def __init__(self, username: str, password: str) -> None:
        super().__init__()
        self._username = username.encode("utf-8")
        self._password = password.encode("utf-8")

    def start(self) -> typing.Tuple[str, typing.Optional[bytes]]:
        return self.name, self._username

    def next(self, challenge: bytes) -> bytes:
        if challenge == PASSWORD_PROMPT:
            return self._password
        raise common.UnexpectedServerChallenge()


class LOGINServer(statemachine.Server):
    """
    Server side of the LOGIN mechanism.

    If the client did not send its username as initial response, it is
    prompted for with ``Username:``. `authenticator` is called with
    ``(username, password)`` once both have been received and raises a
    :class:`~.SASLError` to reject them.

    LOGIN should only be enabled for legacy clients which cannot be
    updated to use PLAIN.
    """

    name = "LOGIN"

    def __init__(self, authenticator: common.LoginAuthenticator) -> None:
        super().__init__()
        self._authenticator = authenticator
        self._state = _State.NOT_STARTED
        self._username = None  # type: typing.Optional[str]

    def next(
            self,
            response: typing.Optional[bytes],
            ) -> common.ServerStep:
        if self._state == _State.DONE:
            raise common.UnexpectedClientResponse()

        if self._state == _State.NOT_STARTED:
            self._state = _State.WAITING_USERNAME
            # RFC 4422, section 3: without initial response the server has
            # to ask for it
            if response is None:
                return USERNAME_PROMPT, False
        elif response is None:
            self._state = _State.DONE
            raise common.UnexpectedClientResponse()

        if self._state == _State.WAITING_USERNAME:
            self._username = utils.decode_utf8(response, "username")
            self._state = _State.WAITING_PASSWORD
            return PASSWORD_PROMPT, False

        self._state = _State.DONE
        password = utils.decode_utf8(response, "password")
        logger.debug("checking LOGIN credentials for %r", self._username)
        self._authenticator(self._username, password)
        return b"", True
