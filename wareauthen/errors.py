# (c) 2005 Ian Bicking and contributors; written for Paste (http://pythonpaste.org)
# Licensed under the MIT license: http://www.opensource.org/licenses/mit-license.php
"""
Exceptions raised by the authentication layer.

Only misconfiguration and broken backends are signalled with
exceptions.  A wrong password or a tampered cookie is ordinary state
(an unauthenticated user) and never raises.
"""

__all__ = ['AuthenError', 'AuthenConfigError', 'UnknownFilterError',
           'BackendNotFound', 'DriverError']


class AuthenError(Exception):
    """Base class for all authentication errors"""


class AuthenConfigError(AuthenError, ValueError):
    """
    An option was unrecognized, had the wrong shape, or was changed
    after the authentication object had already been initialized.
    """


class UnknownFilterError(AuthenConfigError):

    def __init__(self, name):
        AuthenConfigError.__init__(
            self, "Unknown credential filter: %r" % name)
        self.name = name


class BackendNotFound(AuthenError, LookupError):
    """A configured driver or store could not be located"""

    def __init__(self, kind, name, reason=None):
        message = "%s %s can not be found" % (kind, name)
        if reason is not None:
            message += " (%s)" % reason
        AuthenError.__init__(self, message)
        self.kind = kind
        self.name = name


class DriverError(AuthenError, RuntimeError):
    """
    A driver could not check credentials at all (as opposed to the
    credentials simply being wrong), e.g. all of its password files
    are missing.
    """
