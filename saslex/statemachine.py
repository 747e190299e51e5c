########################################################################
# File name: statemachine.py
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
import abc
import logging
import typing

from . import common


logger = logging.getLogger(__name__)


class Client(metaclass=abc.ABCMeta):
    """
    Client side of a SASL mechanism.

    A client instance holds the state of exactly one exchange. Two methods
    must be implemented by subclasses:

    .. automethod:: start

    .. automethod:: next

    The following helpers work for all mechanisms:

    .. automethod:: any_supported

    .. automethod:: authenticate

    .. attribute:: name

       The mechanism name as advertised by servers.
    """

    name = None  # type: str

    @classmethod
    def any_supported(
            cls,
            mechanisms: typing.Iterable[str],
            ) -> typing.Optional[str]:
        """
        Return the mechanism name if it is among the strings in
        `mechanisms` and :data:`None` otherwise.

        The return value must be passed as second argument to
        :meth:`authenticate`.
        """
        if cls.name in mechanisms:
            return cls.name
        return None

    @abc.abstractmethod
    def start(self) -> typing.Tuple[str, typing.Optional[bytes]]:
        """
        Begin the exchange.

        Return the mechanism name and the initial response. An initial
        response of :data:`None` means that the mechanism does not send
        one, which is different from an empty :class:`bytes` object.
        """

    @abc.abstractmethod
    def next(self, challenge: bytes) -> bytes:
        """
        Return the response to the server `challenge`.

        Raise :class:`~.UnexpectedServerChallenge` if the mechanism has no
        answer to it.
        """

    async def authenticate(
            self,
            sm: "SASLStateMachine",
            token: typing.Any,
            ) -> None:
        """
        Run the exchange over the :class:`SASLStateMachine` `sm`. `token`
        is the value previously returned by :meth:`any_supported`.

        Errors raised by :meth:`next` abort the exchange and are
        re-raised. Errors reported by the peer are raised by `sm` as
        :class:`~.SASLFailure`.
        """
        logger.info("attempting %s mechanism", token)

        mechanism, payload = self.start()
        state, challenge = await sm.initiate(
            mechanism=mechanism,
            payload=payload,
        )

        while state == common.SASLState.CHALLENGE:
            try:
                response = self.next(challenge or b"")
            except common.SASLFailure:
                if sm.state == common.SASLState.CHALLENGE:
                    await sm.abort()
                raise
            state, challenge = await sm.response(response)

        if state != common.SASLState.SUCCESS:
            raise common.SASLFailure(
                None,
                text="SASL protocol violation")


class Server(metaclass=abc.ABCMeta):
    """
    Server side of a SASL mechanism.

    A server instance holds the state of exactly one exchange and must not
    be reused once :meth:`next` reported completion or raised.

    .. automethod:: next
    """

    name = None  # type: str

    @abc.abstractmethod
    def next(
            self,
            response: typing.Optional[bytes],
            ) -> common.ServerStep:
        """
        Process the client `response` and return a ``(challenge, done)``
        tuple.

        `response` is :data:`None` on the first call if the client did not
        send an initial response. The exchange is over once `done` is
        true. A failed exchange is reported by raising a
        :class:`~.SASLError`; calls after completion raise
        :class:`~.UnexpectedClientResponse`.
        """


class SASLInterface(metaclass=abc.ABCMeta):
    """
    This class serves as an abstract base class for interfaces for use with
    :class:`SASLStateMachine`. Specific protocols using SASL (such as XMPP,
    IMAP or SMTP) can subclass this interface to implement SASL on top of the
    existing protocol. The interface is responsible for the transport
    encoding of the payloads (usually base64).

    The interface class does not need to implement any state checking. State
    checking is done by the :class:`SASLStateMachine`.

    The return values of the methods below are tuples of the following form:

    * ``(SASLState.SUCCESS, payload)`` -- After successful
      authentication, success is returned. Depending on the mechanism,
      a payload (as :class:`bytes` object) may be attached to the
      result, otherwise, ``payload`` is :data:`None`.

    * ``(SASLState.CHALLENGE, payload)`` -- A challenge was sent by
      the server in reply to the previous command.

    * ``(SASLState.FAILURE, None)`` -- This is only ever returned by
      :meth:`abort`. All other methods **must** raise errors as
      :class:`SASLFailure`.

    .. automethod:: initiate

    .. automethod:: respond

    .. automethod:: abort
    """

    @abc.abstractmethod
    async def initiate(
            self,
            mechanism: str,
            payload: typing.Optional[bytes] = None,
            ) -> common.NextStateTuple:
        """
        Send a SASL initiation request for the given `mechanism`, with the
        initial response `payload` unless it is :data:`None`.

        Wait for a reply by the peer and return the reply as a next-state tuple
        in the format documented at :class:`SASLInterface`.
        """

    @abc.abstractmethod
    async def respond(
            self,
            payload: bytes,
            ) -> common.NextStateTuple:
        """
        Send a response to a challenge. The `payload` is a :class:`bytes`
        object which is to be sent as response.

        Wait for a reply by the peer and return the reply as a next-state tuple
        in the format documented at :class:`SASLInterface`.
        """

    @abc.abstractmethod
    async def abort(self) -> common.NextStateTuple:
        """
        Abort the authentication. The result is either the failure tuple
        (``(SASLState.FAILURE, None)``) or a :class:`SASLFailure` exception if
        the response from the peer did not indicate abortion.
        """


class SASLStateMachine:
    """
    Drive a :class:`SASLInterface` on behalf of a :class:`Client`.

    Each method forwards one step of the exchange to the interface and
    returns ``(state, payload)`` as reported by the peer. Calling a method
    in the wrong phase of the exchange raises :class:`RuntimeError`; a
    failure reported by the peer is raised as :class:`SASLFailure` and
    leaves the machine in the ``FAILURE`` state. Only :meth:`abort` returns
    the failure tuple instead.

    :rfc:`4422` allows a server to attach its final data to the success
    reply instead of sending one more challenge. Such a reply to
    :meth:`response` is handed to the mechanism as a challenge, and the
    empty response the mechanism has to give completes the exchange
    without contacting the peer.
    """

    def __init__(self, interface: SASLInterface):
        super().__init__()
        self.interface = interface
        self._state = common.SASLState.INITIAL

    @property
    def state(self) -> common.SASLState:
        """
        The current :class:`~.SASLState`.
        """
        return self._state

    async def _exchange(
            self,
            request: typing.Awaitable[common.NextStateTuple],
            ) -> common.NextStateTuple:
        try:
            reply_state, reply_payload = await request
        except common.SASLFailure:
            self._state = common.SASLState.FAILURE
            raise
        return common.SASLState.from_reply(reply_state), reply_payload

    def _finish_final_data(self, payload: bytes) -> common.NextStateTuple:
        if payload:
            self._state = common.SASLState.FAILURE
            raise common.SASLFailure(
                None,
                "protocol violation: the server reported success with"
                " final data, but the mechanism answered it with a"
                " non-empty response")
        self._state = common.SASLState.SUCCESS
        return common.SASLState.SUCCESS, None

    async def initiate(
            self,
            mechanism: str,
            payload: typing.Optional[bytes] = None,
            ) -> common.NextStateTuple:
        """
        Start the exchange for `mechanism`, sending `payload` as initial
        response unless it is :data:`None`.

        Success with data is returned as it is; the caller has to check it.
        """
        if self._state != common.SASLState.INITIAL:
            raise RuntimeError("initiate has already been called")

        self._state, payload = await self._exchange(
            self.interface.initiate(mechanism, payload=payload),
        )
        return self._state, payload

    async def response(
            self,
            payload: bytes,
            ) -> common.NextStateTuple:
        """
        Answer the previously received challenge with `payload`.
        """
        if self._state == common.SASLState.SUCCESS_SIMULATE_CHALLENGE:
            return self._finish_final_data(payload)

        if self._state != common.SASLState.CHALLENGE:
            raise RuntimeError(
                "no challenge has been made or negotiation failed")

        state, payload = await self._exchange(self.interface.respond(payload))
        if state == common.SASLState.SUCCESS and payload is not None:
            self._state = common.SASLState.SUCCESS_SIMULATE_CHALLENGE
            return common.SASLState.CHALLENGE, payload

        self._state = state
        return state, payload

    async def abort(self) -> common.NextStateTuple:
        """
        Abort an initiated exchange. The expected result state is
        ``failure``; the machine is in the ``FAILURE`` state afterwards in
        any case.
        """
        if self._state == common.SASLState.INITIAL:
            raise RuntimeError("SASL authentication hasn't started yet")
        if self._state == common.SASLState.SUCCESS_SIMULATE_CHALLENGE:
            raise RuntimeError("SASL message exchange already over")

        try:
            return await self.interface.abort()
        finally:
            self._state = common.SASLState.FAILURE
