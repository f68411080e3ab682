# (c) 2005 Ian Bicking and contributors; written for Paste (http://pythonpaste.org)
# Licensed under the MIT license: http://www.opensource.org/licenses/mit-license.php
"""
HTPasswd driver: credentials checked against Apache htpasswd files.

The options are the paths of one or more htpasswd files; they are
tried in order and the first file accepting the credentials wins::

    DRIVER=['HTPasswd', '/etc/apache/htpasswd', '/etc/apache/other']

Files are read with passlib, so every hash format passlib knows for
htpasswd (apr1 MD5, bcrypt, SHA1, crypt, plain text) is supported.
"""

import logging
import os

from passlib.apache import HtpasswdFile

from wareauthen.drivers import Driver
from wareauthen.errors import DriverError

log = logging.getLogger(__name__)


class HTPasswdDriver(Driver):

    def initialize(self):
        if not self.options:
            raise DriverError(
                "The HTPasswd driver requires at least one htpasswd file")

    def load(self, filename):
        """
        Returns the htpasswd file, or None if it cannot be read
        """
        if not os.path.isfile(filename):
            log.warning("htpasswd file %s does not exist", filename)
            return None
        try:
            return HtpasswdFile(filename)
        except (IOError, OSError, ValueError) as e:
            log.warning("Could not read htpasswd file %s: %s", filename, e)
            return None

    def verify_credentials(self, username=None, password=None, *rest):
        if not username or password is None:
            return None
        found = False
        for filename in self.options:
            htpasswd = self.load(filename)
            if htpasswd is None:
                continue
            found = True
            if htpasswd.check_password(username, password):
                return username
        if not found:
            raise DriverError(
                "None of the htpasswd files could be read: %s"
                % ', '.join(map(str, self.options)))
        return None
