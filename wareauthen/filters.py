# (c) 2005 Ian Bicking and contributors; written for Paste (http://pythonpaste.org)
# Licensed under the MIT license: http://www.opensource.org/licenses/mit-license.php
"""
Credential filters

Drivers rarely store passwords in the clear.  A filter turns a
submitted value into the form it is stored in, so the two can be
compared.  Filters are named in a small string syntax::

    md5                 hex MD5 digest (hex is the default encoding)
    sha1_base64         base64 SHA-1 digest, without padding
    sha256_binary       the raw digest bytes
    lc:md5_hex          lower-case the value, then take its MD5
    crypt               a crypt(3) style hash, using passlib

Filters in a chain are separated by ``:`` and a filter's parameter
follows an ``_``.  ``apply_filters`` runs a chain; ``check_filtered``
runs it against a plain value and compares the result with a stored
value.
"""

import base64
import hashlib
import hmac

from passlib.context import CryptContext

from wareauthen.errors import UnknownFilterError

__all__ = ['apply_filters', 'check_filtered', 'split_filters',
           'strip_filter', 'known_filter']

_crypt_context = CryptContext(
    schemes=['sha512_crypt', 'sha256_crypt', 'md5_crypt', 'bcrypt',
             'des_crypt'],
    default='md5_crypt')


def _to_bytes(value):
    if isinstance(value, bytes):
        return value
    value = str(value)
    try:
        return value.encode('latin-1')
    except UnicodeEncodeError:
        return value.encode('utf-8')


def _digest_filter(algorithm):
    def digest_filter(param, value, stored=None):
        digest = hashlib.new(algorithm, _to_bytes(value)).digest()
        if not param or param == 'hex':
            return digest.hex()
        elif param == 'base64':
            return base64.b64encode(digest).rstrip(b'=').decode('ascii')
        elif param == 'binary':
            return digest
        raise UnknownFilterError('%s_%s' % (algorithm, param))
    digest_filter.__name__ = '%s_filter' % algorithm
    return digest_filter


def _crypt_filter(param, value, stored=None):
    """
    Without a stored hash a fresh ``md5_crypt`` hash is returned.  With
    one, the value is hashed again with the stored hash's own scheme
    and salt, which is what makes the result comparable.
    """
    if isinstance(value, bytes):
        value = value.decode('utf-8')
    if not stored:
        return _crypt_context.hash(value)
    if isinstance(stored, bytes):
        stored = stored.decode('ascii')
    handler = _crypt_context.identify(stored, resolve=True, required=False)
    if handler is None:
        return None
    parsed = handler.from_string(stored)
    settings = {}
    if 'salt' in handler.setting_kwds:
        settings['salt'] = parsed.salt
    if 'rounds' in handler.setting_kwds and parsed.rounds is not None:
        settings['rounds'] = parsed.rounds
    return handler.using(**settings).hash(value)


def _case_filter(method):
    def case_filter(param, value, stored=None):
        return getattr(value, method)()
    return case_filter


_filters = {
    'raw': lambda param, value, stored=None: value,
    'uc': _case_filter('upper'),
    'lc': _case_filter('lower'),
    'trim': _case_filter('strip'),
    'md5': _digest_filter('md5'),
    'sha1': _digest_filter('sha1'),
    'sha256': _digest_filter('sha256'),
    'sha512': _digest_filter('sha512'),
    'crypt': _crypt_filter,
    }


def split_filters(filters):
    """
    Splits a filter chain into a list of ``(name, param)`` tuples
    """
    result = []
    for item in filters.split(':'):
        item = item.strip()
        if not item:
            continue
        if '_' in item:
            name, param = item.split('_', 1)
        else:
            name, param = item, None
        result.append((name.lower(), param and param.lower()))
    return result


def known_filter(filters):
    """True if every filter in the chain exists"""
    chain = split_filters(filters)
    return bool(chain) and all(name in _filters for name, param in chain)


def apply_filters(filters, value, stored=None):
    """
    Runs ``value`` through the chain ``filters``.  ``stored`` is the
    value the result will be compared against; only ``crypt`` makes use
    of it (for the salt).
    """
    if not filters:
        return value
    for name, param in split_filters(filters):
        try:
            func = _filters[name]
        except KeyError:
            raise UnknownFilterError(name)
        value = func(param, value, stored)
        if value is None:
            break
    return value


def check_filtered(filters, plain, stored):
    """
    Filters ``plain`` and compares the result with ``stored``.  The
    comparison is done on bytes, so a binary digest compares correctly
    with the same digest held in a text column.
    """
    if stored is None or plain is None:
        return False
    filtered = apply_filters(filters, plain, stored)
    if filtered is None:
        return False
    return hmac.compare_digest(_to_bytes(filtered), _to_bytes(stored))


def strip_filter(field):
    """
    Splits a field description like ``'lc:md5:users.password'`` into
    its filters and the field name: ``('lc:md5', 'users.password')``.
    """
    if ':' not in field:
        return None, field
    filters, field = field.rsplit(':', 1)
    return filters, field
