# (c) 2005 Ian Bicking and contributors; written for Paste (http://pythonpaste.org)
# Licensed under the MIT license: http://www.opensource.org/licenses/mit-license.php
"""
Session Store

Keeps the authentication fields in the server side session, under
their own names.  The session is whatever the servlet provides
(``paste.session`` or a flup session service), which is trusted, so
no checksum is needed.  This is the default store when a session is
available.
"""

from wareauthen.errors import AuthenConfigError
from wareauthen.stores import Store

__all__ = ['SessionStore']


class SessionStore(Store):

    def load(self):
        if self.options:
            raise AuthenConfigError(
                "The Session store takes no options (got %r)"
                % (self.options,))
        if not self.servlet.has_session():
            raise AuthenConfigError(
                "The Session store needs session middleware (such as "
                "paste.session.SessionMiddleware) in front of the "
                "application")
        self.session = self.servlet.session

    def get(self, name):
        return self.session.get(name)

    def set(self, name, value):
        if value is None:
            self.remove(name)
        else:
            self.session[name] = value

    def remove(self, name):
        self.session.pop(name, None)
