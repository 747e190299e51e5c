########################################################################
# File name: oauthbearer.py
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
OAUTHBEARER
===========

Unlike the other mechanisms, a server cannot simply fail an OAUTHBEARER
exchange (:rfc:`7628`, section 3.2.2): it sends a JSON error document as
challenge, the client answers with the single byte ``0x01`` and only then
the exchange fails. :class:`OAUTHBEARERServer` keeps the error in a
:class:`FailurePending` state until that acknowledgement arrives.

.. autoclass:: OAuthBearerOptions

.. autoclass:: OAuthBearerError

.. autoclass:: InvalidRequest

.. autoclass:: OAUTHBEARER

.. autoclass:: OAUTHBEARERServer

.. autofunction:: parse_client_response
"""
import collections
import enum
import json
import logging
import re
import typing

from . import common, statemachine, utils


logger = logging.getLogger(__name__)


#: The dummy client response acknowledging an error challenge. GS2 defines
#: it as protocol-independent way to cancel an exchange.
ACKNOWLEDGEMENT = b"\x01"

_KVSEP = b"\x01"
_BEARER_PREFIX = "bearer "
_PORT_RE = re.compile(rb"[0-9]+")


OAuthBearerOptions = collections.namedtuple(
    "OAuthBearerOptions",
    [
        "username",
        "token",
        "host",
        "port",
    ]
)
OAuthBearerOptions.__doc__ = """
The fields of an OAUTHBEARER client message.

.. attribute:: username

   Authorization identity; empty if not given.

.. attribute:: token

   The bearer token. Servers receive it lowercased, as the whole
   ``auth`` value is lowercased while parsing.

.. attribute:: host

   Host name the client connected to; empty if not given.

.. attribute:: port

   Port the client connected to; ``0`` if not given.
"""


#: Server state after a failure, until the client acknowledged the error
#: challenge. `error` is raised once it did.
FailurePending = collections.namedtuple("FailurePending", ["error"])


class _State(enum.Enum):
    NOT_STARTED = "not-started"
    DONE = "done"


class OAuthBearerError(common.AuthenticationFailure):
    """
    An OAUTHBEARER error as described in :rfc:`7628`, section 3.2.2.

    It is sent as JSON document in the error challenge and raised on both
    sides once the exchange fails. Authenticators passed to
    :class:`OAUTHBEARERServer` raise it to reject a token; the server then
    sends it to the client as it is.

    .. attribute:: status

       The error code, for example ``"invalid_token"``.

    .. attribute:: schemes

       Space separated list of HTTP authentication schemes.

    .. attribute:: scope

       Space separated list of scopes sufficient for access.

    .. automethod:: to_json

    .. automethod:: from_json
    """

    def __init__(
            self,
            status: str,
            schemes: str = "bearer",
            scope: str = "") -> None:
        super().__init__(
            status,
            text="OAUTHBEARER authentication error {}".format(status),
        )
        self.status = status
        self.schemes = schemes
        self.scope = scope

    def to_json(self) -> bytes:
        return json.dumps(
            {
                "status": self.status,
                "schemes": self.schemes,
                "scope": self.scope,
            },
            separators=(",", ":"),
        ).encode("utf-8")

    @classmethod
    def from_json(cls, data: bytes) -> "OAuthBearerError":
        """
        Decode an error challenge. Malformed documents raise
        :class:`~.SASLFailure`.
        """
        try:
            obj = json.loads(data)
        except ValueError as exc:
            raise common.SASLFailure(
                None,
                text="malformed error challenge: {}".format(exc),
            ) from None

        if not isinstance(obj, dict):
            raise common.SASLFailure(
                None,
                text="malformed error challenge: not a JSON object")

        fields = {}
        for key, default in (("status", None),
                             ("schemes", ""),
                             ("scope", "")):
            value = obj.get(key, default)
            if not isinstance(value, str):
                raise common.SASLFailure(
                    None,
                    text="malformed error challenge: bad {!r}".format(key))
            fields[key] = value

        return cls(**fields)


class InvalidRequest(common.SASLFailure):
    """
    The client message is malformed. The server reports this through an
    ``invalid_request`` error challenge before raising it.
    """

    def __init__(self, text: str) -> None:
        super().__init__("invalid_request", text=text)


def parse_client_response(message: bytes) -> OAuthBearerOptions:
    """
    Parse the OAUTHBEARER client message `message`.

    Raise :class:`InvalidRequest` if the message is malformed and
    :class:`~.SASLFailure` if a field is not valid UTF-8.
    """
    # n,a=user,\x01host=...\x01port=...\x01auth=...\x01\x01
    parts = message.split(b",", 2)
    if len(parts) != 3:
        raise InvalidRequest("Invalid response")
    flag, authzid, params = parts

    # channel binding is not supported
    if not flag.startswith(b"n"):
        raise InvalidRequest("Invalid response, missing 'n' in gs2-cb-flag")

    username = ""
    if authzid:
        if not authzid.startswith(b"a="):
            raise InvalidRequest(
                "Invalid response, missing 'a=' in gs2-authzid")
        username = utils.decode_utf8(authzid[2:], "authzid")

    host = ""
    port = 0
    token = None

    for param in params.split(_KVSEP):
        # the leading and the two trailing separators yield empty fields
        if not param:
            continue

        key, sep, value = param.partition(b"=")
        if not sep:
            raise InvalidRequest("Invalid response, missing '='")

        if key == b"host":
            host = utils.decode_utf8(value, "host")
        elif key == b"port":
            if not _PORT_RE.fullmatch(value) or int(value) > 0xffff:
                raise InvalidRequest(
                    "Invalid response, malformed 'port' value")
            port = int(value)
        elif key == b"auth":
            auth = utils.decode_utf8(value, "auth").lower()
            if not auth.startswith(_BEARER_PREFIX):
                raise InvalidRequest("Unsupported token type")
            token = auth[len(_BEARER_PREFIX):]
        else:
            raise InvalidRequest(
                "Invalid response, unknown parameter: {}".format(
                    utils.decode_utf8(key, "parameter name")))

    if token is None:
        raise InvalidRequest("Invalid response, missing 'auth' parameter")

    return OAuthBearerOptions(
        username=username,
        token=token,
        host=host,
        port=port,
    )


class OAUTHBEARER(statemachine.Client):
    """
    The OAUTHBEARER SASL mechanism (see :rfc:`7628`).

    `token` is the OAuth 2.0 bearer token. `username` is the optional
    authorization identity; `host` and `port` describe the server the
    client connected to and are omitted from the message if empty
    respectively ``0``.
    """

    name = "OAUTHBEARER"

    def __init__(
            self,
            token: str,
            *,
            username: str = "",
            host: str = "",
            port: int = 0) -> None:
        super().__init__()
        if not 0 <= port <= 0xffff:
            raise ValueError("port out of range: {}".format(port))
        self.options = OAuthBearerOptions(
            username=username,
            token=token,
            host=host,
            port=port,
        )

    def start(self) -> typing.Tuple[str, typing.Optional[bytes]]:
        authzid = ""
        if self.options.username:
            authzid = "a=" + self.options.username

        params = []
        if self.options.host:
            params.append("host=" + self.options.host)
        if self.options.port:
            params.append("port={}".format(self.options.port))
        params.append("auth=Bearer " + self.options.token)

        message = "n,{},\x01{}\x01\x01".format(authzid, "\x01".join(params))
        return self.name, message.encode("utf-8")

    def next(self, challenge: bytes) -> bytes:
        """
        The only challenge a server sends is the error document, which is
        raised as :class:`OAuthBearerError`.
        """
        raise OAuthBearerError.from_json(challenge)

    async def authenticate(
            self,
            sm: statemachine.SASLStateMachine,
            token: typing.Any) -> None:
        logger.info("attempting %s mechanism", token)

        mechanism, payload = self.start()
        state, challenge = await sm.initiate(
            mechanism=mechanism,
            payload=payload,
        )

        if state == common.SASLState.SUCCESS:
            return

        if state != common.SASLState.CHALLENGE:
            raise common.SASLFailure(
                None,
                text="SASL protocol violation")

        try:
            error = OAuthBearerError.from_json(challenge or b"")
        except common.SASLFailure:
            await sm.abort()
            raise

        logger.debug("server sent OAUTHBEARER error %r", error.status)

        try:
            await sm.response(ACKNOWLEDGEMENT)
        except common.SASLFailure:
            raise error from None

        if sm.state == common.SASLState.CHALLENGE:
            await sm.abort()
        raise common.SASLFailure(
            None,
            text="SASL protocol violation: exchange continued after"
            " error challenge")


class OAUTHBEARERServer(statemachine.Server):
    """
    Server side of the OAUTHBEARER mechanism.

    `authenticator` is called with the :class:`OAuthBearerOptions` sent by
    the client. To reject the client it raises :class:`OAuthBearerError`,
    which is sent to the client as error challenge, or any other
    :class:`~.SASLError`, for which a generic ``invalid_request`` error is
    sent.

    Neither rejections nor malformed client messages are raised right
    away: :meth:`next` returns the error challenge and raises the error
    on the following call, once the client acknowledged the challenge
    with ``0x01``. Any other acknowledgement raises :class:`~.SASLFailure`.
    """

    name = "OAUTHBEARER"

    def __init__(
            self,
            authenticator: typing.Callable[[OAuthBearerOptions], None],
            ) -> None:
        super().__init__()
        self._authenticator = authenticator
        self._state = _State.NOT_STARTED  # type: typing.Any

    def _fail(
            self,
            challenge: OAuthBearerError,
            error: common.SASLError) -> common.ServerStep:
        self._state = FailurePending(error)
        return challenge.to_json(), False

    def next(
            self,
            response: typing.Optional[bytes],
            ) -> common.ServerStep:
        if isinstance(self._state, FailurePending):
            if response != ACKNOWLEDGEMENT:
                raise common.SASLFailure(None, text="unexpected response")
            error = self._state.error
            self._state = _State.DONE
            raise error

        if self._state == _State.DONE:
            raise common.UnexpectedClientResponse()

        if response is None:
            return b"", False

        self._state = _State.DONE

        try:
            options = parse_client_response(response)
        except InvalidRequest as exc:
            logger.debug("malformed OAUTHBEARER message: %s", exc.text)
            return self._fail(OAuthBearerError("invalid_request"), exc)

        try:
            self._authenticator(options)
        except OAuthBearerError as exc:
            logger.debug("OAUTHBEARER token rejected: %s", exc.status)
            return self._fail(exc, exc)
        except common.SASLError as exc:
            logger.debug("OAUTHBEARER token rejected: %s", exc)
            return self._fail(OAuthBearerError("invalid_request"), exc)

        return b"", True
