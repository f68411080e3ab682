# (c) 2005 Ian Bicking and contributors; written for Paste (http://pythonpaste.org)
# Licensed under the MIT license: http://www.opensource.org/licenses/mit-license.php
"""
Drivers verify credentials.

A driver is created with the authentication object and the options
given in the ``DRIVER`` configuration, and answers one question in
``verify_credentials(*credentials)``: the username, if the credentials
are good, or None.  A driver only raises when it cannot answer at all
(a missing password file, say); wrong credentials are not an error.

Drivers are looked up by name.  The built-in ones are ``Generic``,
``HTPasswd``, ``DBI`` and ``Dummy``; others can be added with
``register_driver``, or named by import path (``'mypackage.auth:LDAPDriver'``).
"""

import logging

from paste.util import import_string

from wareauthen import filters
from wareauthen.config import options_to_dict
from wareauthen.errors import BackendNotFound

__all__ = ['Driver', 'register_driver', 'get_driver_class']

log = logging.getLogger(__name__)

_drivers = {
    'generic': 'wareauthen.drivers.generic:GenericDriver',
    'htpasswd': 'wareauthen.drivers.htpasswd:HTPasswdDriver',
    'dbi': 'wareauthen.drivers.dbi:DBIDriver',
    'dummy': 'wareauthen.drivers.dummy:DummyDriver',
    }


def register_driver(name, driver_class):
    """
    Makes a driver available under ``name`` (not case sensitive).
    ``driver_class`` may be a class or an import string.
    """
    _drivers[name.lower()] = driver_class


def get_driver_class(name):
    """
    Resolves a driver name (or import string) to its class, raising
    ``BackendNotFound`` if it cannot be loaded.
    """
    if isinstance(name, type):
        return name
    target = _drivers.get(name.lower())
    if target is None:
        if '.' not in name and ':' not in name:
            raise BackendNotFound('Driver', name)
        target = name
    if isinstance(target, str):
        try:
            target = import_string.eval_import(target)
        except (ImportError, AttributeError, NameError) as e:
            raise BackendNotFound('Driver', name, e)
    log.debug("Resolved driver %r to %r", name, target)
    return target


class Driver(object):

    """
    Base class for drivers.  ``options`` is the list of options that
    followed the driver name in the configuration; subclasses check
    them in ``initialize``.
    """

    def __init__(self, authen, *options):
        self.authen = authen
        self.options = list(options)
        self.initialize()

    def initialize(self):
        pass

    def verify_credentials(self, *credentials):
        raise NotImplementedError

    def find_options(self):
        """The options as a dictionary (for name/value style options)"""
        return options_to_dict(
            self.options, 'options for the %s driver' % self.__class__.__name__)

    def filter(self, filter_chain, value, stored=None):
        return filters.apply_filters(filter_chain, value, stored)

    def check_filtered(self, filter_chain, plain, stored):
        return filters.check_filtered(filter_chain, plain, stored)

    def __repr__(self):
        return '<%s>' % self.__class__.__name__
