# (c) 2005 Ian Bicking and contributors; written for Paste (http://pythonpaste.org)
# Licensed under the MIT license: http://www.opensource.org/licenses/mit-license.php
"""
Stores keep the authentication state between requests.

A store holds a few named fields (``username``, ``login_attempts``,
``last_login``, ``last_access``) and offers ``fetch``, ``save``,
``delete`` and ``clear`` over them.  Where the fields really live is
up to the store: the built-in ``Cookie`` store keeps them in a signed
cookie, the ``Session`` store in the server side session.

Stores are looked up by name like drivers; see ``register_store``.
"""

import logging
import weakref

from paste.util import import_string

from wareauthen.errors import BackendNotFound

__all__ = ['Store', 'register_store', 'get_store_class']

log = logging.getLogger(__name__)

_stores = {
    'cookie': 'wareauthen.stores.cookie:CookieStore',
    'session': 'wareauthen.stores.session:SessionStore',
    }


def register_store(name, store_class):
    """
    Makes a store available under ``name`` (not case sensitive).
    ``store_class`` may be a class or an import string.
    """
    _stores[name.lower()] = store_class


def get_store_class(name):
    """
    Resolves a store name (or import string) to its class, raising
    ``BackendNotFound`` if it cannot be loaded.
    """
    if isinstance(name, type):
        return name
    target = _stores.get(name.lower())
    if target is None:
        if '.' not in name and ':' not in name:
            raise BackendNotFound('Store', name)
        target = name
    if isinstance(target, str):
        try:
            target = import_string.eval_import(target)
        except (ImportError, AttributeError, NameError) as e:
            raise BackendNotFound('Store', name, e)
    log.debug("Resolved store %r to %r", name, target)
    return target


class Store(object):

    """
    Base class for stores.

    The store only keeps a weak reference to the authentication
    object; both live for a single request.  ``initialize`` is called
    before the first ``fetch``, ``save`` or ``delete`` and loads the
    persisted state.  ``postrun`` is called with the servlet once the
    run mode has produced its body.
    """

    fields = ('username', 'login_attempts', 'last_login', 'last_access')

    def __init__(self, authen, *options):
        self._authen = weakref.ref(authen)
        self.options = list(options)
        self._initialized = False

    @property
    def authen(self):
        return self._authen()

    @property
    def servlet(self):
        return self.authen.servlet

    def initialize(self):
        if self._initialized:
            return
        self._initialized = True
        self.load()

    def load(self):
        pass

    def fetch(self, *names):
        """
        Returns the value of the named field, or a list of values if
        several names are given; missing fields are None.
        """
        self.initialize()
        values = [self.get(name) for name in names]
        if len(names) == 1:
            return values[0]
        return values

    def save(self, **items):
        self.initialize()
        for name, value in items.items():
            self.set(name, value)
        return True

    def delete(self, *names):
        self.initialize()
        for name in names:
            self.remove(name)
        return True

    def clear(self):
        """Removes all the authentication fields"""
        return self.delete(*self.fields)

    def get(self, name):
        raise NotImplementedError

    def set(self, name, value):
        raise NotImplementedError

    def remove(self, name):
        raise NotImplementedError

    def postrun(self, servlet):
        pass

    def __repr__(self):
        return '<%s>' % self.__class__.__name__
