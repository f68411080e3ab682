# (c) 2005 Ian Bicking and contributors; written for Paste (http://pythonpaste.org)
# Licensed under the MIT license: http://www.opensource.org/licenses/mit-license.php
"""
Outgoing cookies
"""

import time
from http.cookies import SimpleCookie

from wareauthen.timeinterval import time_to_seconds

__all__ = ['Cookie']


class Cookie(object):

    """
    A cookie to be sent with the response.  ``expires`` may be None
    (or ``'ONCLOSE'``) for a session cookie, ``'NOW'`` to expire it at
    once, a relative interval like ``'+1y'``, or a timestamp.
    """

    def __init__(self, name, value, path='/', expires=None, secure=False,
                 httponly=True):
        self.name = name
        self.value = value
        self.path = path
        self.secure = secure
        self.httponly = httponly
        if expires == 'ONCLOSE' or not expires:
            expires = None
        elif expires == 'NOW':
            expires = time.time()
        elif isinstance(expires, str):
            interval = time_to_seconds(expires)
            if interval is None:
                raise ValueError("Invalid cookie expiry: %r" % expires)
            expires = time.time() + interval
        if isinstance(expires, (int, float)):
            expires = time.gmtime(expires)
        if isinstance(expires, (tuple, time.struct_time)):
            expires = time.strftime("%a, %d-%b-%Y %H:%M:%S GMT", expires)
        self.expires = expires

    def __repr__(self):
        return '<%s %s=%r>' % (
            self.__class__.__name__, self.name, self.value)

    def header(self):
        """The value for a ``Set-Cookie`` header"""
        c = SimpleCookie()
        c[self.name] = self.value
        c[self.name]['path'] = self.path
        if self.expires is not None:
            c[self.name]['expires'] = self.expires
        if self.secure:
            c[self.name]['secure'] = True
        if self.httponly:
            c[self.name]['httponly'] = True
        return c.output(header='').strip()
