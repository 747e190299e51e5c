########################################################################
# File name: common.py
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
import typing


ERR_UNEXPECTED_CLIENT_RESPONSE = "sasl: unexpected client response"
ERR_UNEXPECTED_SERVER_CHALLENGE = "sasl: unexpected server challenge"


class SASLError(Exception):
    """
    Common base of all errors raised by the mechanisms and the state
    machine.

    `opaque_error` identifies the condition for the application, for
    instance the ``<failure/>`` condition of the host protocol; the
    mechanisms use :data:`None` for errors they detect themselves. `kind`
    names the error class and is filled in by the subclasses. `text` is an
    optional human-readable description.

    .. attribute:: opaque_error

    .. attribute:: text
    """

    def __init__(
            self,
            opaque_error: typing.Any,
            kind: str,
            text: typing.Optional[str] = None):
        parts = [str(opaque_error), kind]
        if text:
            parts.append(text)
        super().__init__(": ".join(parts))
        self.opaque_error = opaque_error
        self.text = text


class AuthenticationFailure(SASLError):
    """
    A SASL error which indicates that the provided credentials are
    invalid. Authenticator callbacks passed to the server mechanisms raise
    this to reject a client.
    """

    def __init__(
            self,
            opaque_error: typing.Any,
            text: typing.Optional[str] = None):
        super().__init__(opaque_error, "authentication failed", text=text)


class SASLFailure(SASLError):
    """
    A SASL protocol failure which is unrelated to the credentials passed,
    for instance a message which cannot be parsed or a message which was
    not expected at this point of the exchange.
    """

    def __init__(
            self,
            opaque_error: typing.Any,
            text: typing.Optional[str] = None):
        super().__init__(opaque_error, "SASL failure", text=text)


class UnexpectedClientResponse(SASLFailure):
    """
    The server mechanism received a response although its exchange is
    already over.
    """

    def __init__(self) -> None:
        super().__init__(None, text=ERR_UNEXPECTED_CLIENT_RESPONSE)


class UnexpectedServerChallenge(SASLFailure):
    """
    The client mechanism received a challenge it has no answer for.
    """

    def __init__(self) -> None:
        super().__init__(None, text=ERR_UNEXPECTED_SERVER_CHALLENGE)


class SASLState(enum.Enum):
    """
    Phase of a client-side exchange as tracked by
    :class:`~.SASLStateMachine`.

    :attr:`CHALLENGE`, :attr:`SUCCESS` and :attr:`FAILURE` are what a peer
    can report. :attr:`INITIAL` (nothing sent yet) and
    :attr:`SUCCESS_SIMULATE_CHALLENGE` (success with final data, waiting
    for the mechanism's empty response) exist only inside the state
    machine and must not be returned by a :class:`~.SASLInterface`.

    .. automethod:: from_reply
    """

    INITIAL = "initial"
    CHALLENGE = "challenge"
    SUCCESS = "success"
    FAILURE = "failure"
    SUCCESS_SIMULATE_CHALLENGE = "success-simulate-challenge"

    @classmethod
    def from_reply(cls, state: typing.Any) -> "SASLState":
        """
        Return the :class:`SASLState` for a state reported by a peer, given
        as member or as its value (``"challenge"``, ``"success"`` or
        ``"failure"``). Internal states raise :class:`RuntimeError`.
        """
        try:
            result = cls(state)
        except ValueError:
            result = None
        if result not in _REPLY_STATES:
            raise RuntimeError("invalid SASL state", state)
        return result


_REPLY_STATES = frozenset({
    SASLState.CHALLENGE,
    SASLState.SUCCESS,
    SASLState.FAILURE,
})


#: ``(state, payload)`` as returned by :class:`~.SASLInterface` methods.
NextStateTuple = typing.Tuple[SASLState, typing.Optional[bytes]]

#: ``(challenge, done)`` as returned by :meth:`~.Server.next`.
ServerStep = typing.Tuple[bytes, bool]

#: Called with the trace (ANONYMOUS) or the authorization identity
#: (EXTERNAL).
IdentityAuthenticator = typing.Callable[[str], None]

#: Called with ``(username, password)``.
LoginAuthenticator = typing.Callable[[str, str], None]

#: Called with ``(identity, username, password)``.
PlainAuthenticator = typing.Callable[[str, str, str], None]
