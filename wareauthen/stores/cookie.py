# (c) 2005 Clark C. Evans
# This module is part of the Python Paste Project and is released under
# the MIT License: http://www.opensource.org/licenses/mit-license.php
"""
Cookie Store

Keeps the authentication fields in a single cookie, so nothing has to
be kept on the server.  The cookie value is the base64 encoding of::

    c=CHECKSUM\\0name=value\\0name=value...

where the checksum is the (unpadded, base64) SHA-1 of the secret and
the sorted field values, joined with NUL bytes.  A user who does not
know the secret cannot produce a matching checksum after changing a
value, so a cookie that does not verify is thrown away entirely: the
user simply appears not to be logged in.

  NOTE: the checksum covers the values but not the field names.  This
        matches the established cookie format, but it means renaming a
        field in the payload goes unnoticed.  Keep this in mind before
        storing additional fields in this store.

Options (a dictionary or name/value pairs):

``SECRET``
    Required; ``config`` rejects a Cookie store without one.  Keep
    it stable, or every restart logs everyone out.
``NAME``
    The cookie name, ``CAPAUTH_DATA`` by default.
``EXPIRY``
    ``None`` (the default) for a cookie that goes away when the
    browser closes, or an interval like ``'+1y'``.
``PATH``
    The cookie path, ``/`` by default.

The cookie is only sent when the fields changed during the request.
According to the cookie specifications, RFC2068 and RFC2109, browsers
should allow each cookie a content size of at least 4k (4096 bytes),
which is plenty for these fields.
"""

import base64
import binascii
import hashlib
import hmac
import logging

from wareauthen.config import options_to_dict
from wareauthen.errors import AuthenConfigError
from wareauthen.stores import Store

__all__ = ['CookieStore']

log = logging.getLogger(__name__)

CHECKSUM_FIELD = 'c'


class CookieStore(Store):

    default_name = 'CAPAUTH_DATA'

    def __init__(self, authen, *options):
        Store.__init__(self, authen, *options)
        self.cookie_options = options_to_dict(
            options, 'options for the Cookie store')
        invalid = [k for k in self.cookie_options
                   if k not in ('SECRET', 'NAME', 'EXPIRY', 'PATH')]
        if invalid:
            raise AuthenConfigError(
                "Invalid option(s) (%s) passed to the Cookie store"
                % ', '.join(sorted(invalid)))
        self.data = {}
        self.changed = False

    @property
    def cookie_name(self):
        return self.cookie_options.get('NAME') or self.default_name

    def require_secret(self):
        secret = self.cookie_options.get('SECRET')
        if not secret:
            raise AuthenConfigError(
                "The Cookie store requires a SECRET option, e.g. "
                "STORE=['Cookie', {'SECRET': '...'}]")
        return secret

    def load(self):
        self.require_secret()
        raw = self.servlet.cookies.get(self.cookie_name)
        if not raw:
            return
        data = self.decode(raw)
        if data is None:
            log.warning("Discarding %s cookie with a bad checksum",
                        self.cookie_name)
            return
        self.data = data

    def get(self, name):
        return self.data.get(name)

    def set(self, name, value):
        if value is None:
            self.remove(name)
            return
        if (name == CHECKSUM_FIELD or '=' in name or '\0' in name
            or '\0' in str(value)):
            raise ValueError(
                "Field %r (value %r) cannot be stored in a cookie"
                % (name, value))
        self.data[name] = str(value)
        self.changed = True

    def remove(self, name):
        if name in self.data:
            del self.data[name]
            self.changed = True

    def postrun(self, servlet):
        if not self.changed:
            return
        servlet.set_cookie(
            self.cookie_name, self.encode(self.data),
            path=self.cookie_options.get('PATH') or '/',
            expires=self.cookie_options.get('EXPIRY'),
            secure=servlet.is_secure())

    def checksum(self, data):
        content = '\0'.join([self.require_secret()] + sorted(data.values()))
        digest = hashlib.sha1(content.encode('utf-8')).digest()
        return base64.b64encode(digest).rstrip(b'=').decode('ascii')

    def encode(self, data):
        """
        Packs ``data`` (a dictionary of strings) into a cookie value
        """
        data = dict((k, str(v)) for k, v in data.items() if v is not None)
        pairs = ['%s=%s' % (CHECKSUM_FIELD, self.checksum(data))]
        for name, value in data.items():
            pairs.append('%s=%s' % (name, value))
        return base64.b64encode('\0'.join(pairs).encode('utf-8')).decode('ascii')

    def decode(self, raw):
        """
        Unpacks a cookie value, returning None unless it is well formed
        and its checksum verifies
        """
        try:
            content = base64.b64decode(raw.encode('ascii'), validate=True)
        except (binascii.Error, ValueError, UnicodeError):
            return None
        # only accept the one canonical encoding of the content
        if base64.b64encode(content).decode('ascii') != raw:
            return None
        try:
            content = content.decode('utf-8')
        except UnicodeDecodeError:
            return None
        data = {}
        for pair in content.split('\0'):
            if '=' not in pair:
                return None
            name, value = pair.split('=', 1)
            if name in data:
                return None
            data[name] = value
        checksum = data.pop(CHECKSUM_FIELD, None)
        if checksum is None:
            return None
        expected = self.checksum(data)
        if not hmac.compare_digest(checksum.encode('utf-8'),
                                   expected.encode('utf-8')):
            return None
        return data
