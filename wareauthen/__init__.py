# (c) 2005 Ian Bicking and contributors; written for Paste (http://pythonpaste.org)
# Licensed under the MIT license: http://www.opensource.org/licenses/mit-license.php
"""
Pluggable authentication for run-mode WSGI servlets.
"""

from wareauthen.authentication import Authentication, AuthenPlugin
from wareauthen.config import AuthenConfig, ConfigRegistry
from wareauthen.errors import (
    AuthenError, AuthenConfigError, BackendNotFound, DriverError,
    UnknownFilterError)
from wareauthen.servlet import Servlet, require_authentication
