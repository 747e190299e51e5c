########################################################################
# File name: __init__.py
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
Running a SASL exchange
=======================

Every mechanism comes as a pair of classes: a :class:`Client` and a
:class:`Server`. Both operate on decoded :class:`bytes`; transport encoding
(base64, continuation lines, ...) is up to the protocol using them. One
instance handles exactly one exchange; construct a new one for the next.

On the server, feed each client response to :meth:`Server.next` until it
reports completion::

    server = saslex.get_server_mechanism(mechanism)(authenticator)
    response = initial_response  # None if the client sent none
    while True:
        try:
            challenge, done = server.next(response)
        except saslex.AuthenticationFailure:
            # the credentials were rejected
        except saslex.SASLFailure:
            # the client violated the protocol
        if done:
            break
        response = send_challenge_and_wait(challenge)

The authenticator is supplied by the application. Its signature depends on
the mechanism, and it rejects credentials by raising
:class:`AuthenticationFailure` (or :class:`OAuthBearerError` for
OAUTHBEARER).

Using SASL in a client protocol
===============================

Clients can be driven by hand through :meth:`Client.start` and
:meth:`Client.next`, or over a subclass of :class:`SASLInterface` which
implements the protocol specific messages::

    # intf = <instance of your subclass of SASLInterface>
    for impl in mechanism_impls:
        token = impl.any_supported(sasl_mechanisms)
        if token is not None:
            sm = saslex.SASLStateMachine(intf)
            try:
                await impl.authenticate(sm, token)
            except saslex.AuthenticationFailure:
                # handle authentication failure
                # it is generally not sensible to re-try with other mechanisms
            except saslex.SASLFailure:
                # this is a protocol problem, it is sensible to re-try other
                # mechanisms
            else:
                # authentication was successful!

Which mechanisms are offered and picked is up to the application.

.. autosummary::

   ANONYMOUS
   EXTERNAL
   LOGIN
   PLAIN
   OAUTHBEARER

Exchange contract
=================

.. autoclass:: Client

.. autoclass:: Server

Server mechanism registry
=========================

.. autodata:: SERVER_MECHANISMS

.. autofunction:: register_server_mechanism

.. autofunction:: get_server_mechanism

Interface for protocols using SASL
==================================

.. autoclass:: SASLInterface

.. autoclass:: SASLState

.. autoclass:: SASLStateMachine

Exception classes
=================

.. autoclass:: SASLError

.. autoclass:: SASLFailure

.. autoclass:: AuthenticationFailure

.. autoclass:: UnexpectedClientResponse

.. autoclass:: UnexpectedServerChallenge

.. autoclass:: OAuthBearerError

Version information
===================

.. autodata:: __version__

.. autodata:: version_info
"""  # NOQA
import typing

from .common import (  # noqa:F401
    AuthenticationFailure,
    SASLError,
    SASLFailure,
    SASLState,
    UnexpectedClientResponse,
    UnexpectedServerChallenge,
)

from .statemachine import (  # noqa:F401
    Client,
    SASLInterface,
    SASLStateMachine,
    Server,
)

from .anonymous import (  # noqa:F401
    ANONYMOUS,
    ANONYMOUSServer,
)

from .external import (  # noqa:F401
    EXTERNAL,
    EXTERNALServer,
)

from .login import (  # noqa:F401
    LOGIN,
    LOGINServer,
)

from .plain import (  # noqa:F401
    PLAIN,
    PLAINServer,
)

from .oauthbearer import (  # noqa:F401
    OAUTHBEARER,
    OAUTHBEARERServer,
    OAuthBearerError,
    OAuthBearerOptions,
)

from .version import version, __version__, version_info  # noqa:F401

#: Server mechanism classes by mechanism name.
SERVER_MECHANISMS = {}  # type: typing.Dict[str, typing.Type[Server]]


def register_server_mechanism(
        name: str,
        cls: typing.Type[Server],
        overwrite: bool = False) -> None:
    """
    Make the :class:`Server` subclass `cls` available as `name`.

    Registering a name twice raises :class:`ValueError` unless `overwrite`
    is true.
    """
    if not overwrite and name in SERVER_MECHANISMS:
        raise ValueError(
            "SASL mechanism {} already registered".format(name))
    SERVER_MECHANISMS[name] = cls


def get_server_mechanism(name: str) -> typing.Type[Server]:
    """
    Return the :class:`Server` subclass registered for `name`. Unknown names
    raise :class:`KeyError`.
    """
    return SERVER_MECHANISMS[name]


for _cls in (ANONYMOUSServer, EXTERNALServer, LOGINServer, PLAINServer,
             OAUTHBEARERServer):
    register_server_mechanism(_cls.name, _cls)
del _cls

#: The imported :mod:`saslex` version as a tuple.
#:
#: The components of the tuple are, in order: `major version`, `minor version`,
#: `patch level`, and `pre-release identifier`.
version_info = version_info

#: The imported :mod:`saslex` version as a string.
#:
#: The version number is dot-separated; in pre-release or development versions,
#: the version number is followed by a hyphen-separated pre-release identifier.
__version__ = __version__
