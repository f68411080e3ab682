# (c) 2005 Ian Bicking and contributors; written for Paste (http://pythonpaste.org)
# Licensed under the MIT license: http://www.opensource.org/licenses/mit-license.php
"""
Dummy driver: accepts any username with any password.

Useful while developing an application; it offers no security at
all.  It is the driver used when no ``DRIVER`` is configured.
"""

import logging

from wareauthen.drivers import Driver

log = logging.getLogger(__name__)


class DummyDriver(Driver):

    def verify_credentials(self, *credentials):
        if credentials and credentials[0]:
            log.debug("Dummy driver accepting %r", credentials[0])
            return credentials[0]
        return None
