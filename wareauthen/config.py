# (c) 2005 Ian Bicking and contributors; written for Paste (http://pythonpaste.org)
# Licensed under the MIT license: http://www.opensource.org/licenses/mit-license.php
"""
Configuration of the authentication layer.

Configuration is held per application (servlet) class in an
``AuthenConfig``; a ``ConfigRegistry`` maps classes to their
configuration.  Options are checked as they are given, so a mistake
shows up when the application module is imported rather than on the
first request.  Recognized options:

``DRIVER``
    A driver name, a list of ``[name, option, ...]``, or a list of
    such lists.  Drivers are tried in order.

``STORE``
    A store name or ``[name, option, ...]``.

``LOGIN_RUNMODE`` / ``LOGIN_DESTINATION``
``LOGOUT_RUNMODE`` / ``LOGOUT_DESTINATION``
``POST_LOGIN_RUNMODE`` / ``POST_LOGIN_DESTINATION``
    Where to send the user; a run mode takes precedence over a URL.

``CREDENTIALS``
    The names of the form fields holding the credentials, username
    first.  Defaults to ``['authen_username', 'authen_password']``.

``LOGIN_SESSION_TIMEOUT``
    A duration (idle timeout), or a dictionary with any of
    ``IDLE_FOR``, ``EVERY`` (durations) and ``CUSTOM`` (a callable
    given the authentication object).
"""

import re
import warnings

from wareauthen.errors import AuthenConfigError
from wareauthen.timeinterval import time_to_seconds

__all__ = ['AuthenConfig', 'ConfigRegistry', 'options_to_dict',
           'DEFAULT_CREDENTIALS', 'ALL_RUNMODES']

DEFAULT_CREDENTIALS = ['authen_username', 'authen_password']

# protected_runmodes() sentinel protecting every run mode
ALL_RUNMODES = ':all'

_redirect_options = [
    'LOGIN_RUNMODE', 'LOGIN_DESTINATION',
    'LOGOUT_RUNMODE', 'LOGOUT_DESTINATION',
    'POST_LOGIN_RUNMODE', 'POST_LOGIN_DESTINATION',
    ]

recognized_options = (
    ['DRIVER', 'STORE'] + _redirect_options
    + ['CREDENTIALS', 'LOGIN_SESSION_TIMEOUT'])

_timeout_options = ('IDLE_FOR', 'EVERY', 'CUSTOM')

pattern_type = type(re.compile(''))


def _is_sequence(value):
    return isinstance(value, (list, tuple))


def _cap_dict(d):
    result = {}
    for key, value in d.items():
        if not isinstance(key, str):
            raise AuthenConfigError(
                "authen config error:  option names must be strings "
                "(got %r)" % (key,))
        result[key.upper()] = value
    return result


def options_to_dict(options, what='options'):
    """
    Turns backend options, given either as a single dictionary or as
    a flat list of name/value pairs, into a dictionary with upper-case
    keys.
    """
    options = list(options)
    if len(options) == 1 and isinstance(options[0], dict):
        return _cap_dict(options[0])
    if len(options) % 2:
        raise AuthenConfigError(
            "Invalid %s: expected a dictionary or name/value pairs, "
            "got %r" % (what, options))
    return _cap_dict(dict(zip(options[::2], options[1::2])))


def _backend_list(name, value):
    if not isinstance(value, (str, type)) and not _is_sequence(value):
        raise AuthenConfigError(
            "authen config error:  parameter %s is not a string or list"
            % name)
    if not _is_sequence(value):
        value = [value]
    value = list(value)
    if not value:
        raise AuthenConfigError(
            "authen config error:  parameter %s is empty" % name)
    return value


def _check_backend_name(name, entry):
    if not entry or not isinstance(entry[0], (str, type)):
        raise AuthenConfigError(
            "authen config error:  %s entry %r does not start with a "
            "backend name" % (name, entry))


def _check_cookie_secret(store):
    if not (isinstance(store[0], str) and store[0].lower() == 'cookie'):
        return
    options = options_to_dict(store[1:], 'options for the Cookie store')
    if not options.get('SECRET'):
        raise AuthenConfigError(
            "authen config error:  parameter STORE names the Cookie store "
            "but gives no SECRET option")


def _parse_timeout(value):
    if not isinstance(value, dict):
        seconds = time_to_seconds(value)
        if seconds is None:
            raise AuthenConfigError(
                "authen config error: parameter LOGIN_SESSION_TIMEOUT "
                "is not a valid time string")
        return {'IDLE_FOR': seconds}
    value = _cap_dict(value)
    options = {}
    for name in ('IDLE_FOR', 'EVERY'):
        if value.get(name):
            seconds = time_to_seconds(value[name])
            if seconds is None:
                raise AuthenConfigError(
                    "authen config error: %s option to "
                    "LOGIN_SESSION_TIMEOUT is not a valid time string"
                    % name)
            options[name] = seconds
    if value.get('CUSTOM'):
        if not callable(value['CUSTOM']):
            raise AuthenConfigError(
                "authen config error: CUSTOM option to "
                "LOGIN_SESSION_TIMEOUT must be callable")
        options['CUSTOM'] = value['CUSTOM']
    invalid = sorted(k for k in value if k not in _timeout_options)
    if invalid:
        raise AuthenConfigError(
            "authen config error: Invalid option(s) (%s) passed to "
            "LOGIN_SESSION_TIMEOUT" % ', '.join(invalid))
    return options


class AuthenConfig(object):

    """
    The configuration of one application class.

    ``options`` holds the normalized options: ``DRIVER`` is always a
    list of lists, ``STORE`` and ``CREDENTIALS`` are lists, and
    ``LOGIN_SESSION_TIMEOUT`` is a dictionary of seconds (plus the
    ``CUSTOM`` callable).  ``protected`` holds the protection rules
    given to ``protected_runmodes``.
    """

    def __init__(self):
        self.options = {}
        self.protected = []

    def copy(self):
        new = self.__class__()
        new.options = dict(self.options)
        new.protected = list(self.protected)
        return new

    def get(self, name, default=None):
        return self.options.get(name, default)

    def __contains__(self, name):
        return name in self.options

    def __repr__(self):
        return '<%s %r>' % (self.__class__.__name__, self.options)

    def config(self, *args, **kw):
        """
        Sets options.  Accepts a single dictionary, keyword arguments,
        or a flat list of name/value pairs (option names are not case
        sensitive).  Nothing is changed unless all options are valid.
        """
        if len(args) == 1 and isinstance(args[0], dict):
            props = _cap_dict(args[0])
        else:
            props = options_to_dict(args, 'config arguments')
        props.update(_cap_dict(kw))
        new = {}

        if props.get('DRIVER') is not None:
            drivers = _backend_list('DRIVER', props.pop('DRIVER'))
            # accept a name, or one option list, but always keep a list
            # of option lists so several drivers can be configured
            if not _is_sequence(drivers[0]):
                drivers = [drivers]
            drivers = [list(_backend_list('DRIVER', entry))
                       for entry in drivers]
            for entry in drivers:
                _check_backend_name('DRIVER', entry)
            new['DRIVER'] = drivers

        if props.get('STORE') is not None:
            store = _backend_list('STORE', props.pop('STORE'))
            _check_backend_name('STORE', store)
            _check_cookie_secret(store)
            new['STORE'] = store

        for name in _redirect_options:
            if props.get(name) is None:
                continue
            value = props.pop(name)
            if not isinstance(value, str):
                raise AuthenConfigError(
                    "authen config error:  parameter %s is not a string"
                    % name)
            new[name] = value

        for prefix in ('POST_LOGIN', 'LOGIN', 'LOGOUT'):
            runmode = new.get(prefix + '_RUNMODE',
                              self.options.get(prefix + '_RUNMODE'))
            if runmode and (prefix + '_DESTINATION') in new:
                warnings.warn(
                    "authen config warning:  parameter %s_DESTINATION "
                    "ignored since we already have %s_RUNMODE"
                    % (prefix, prefix), stacklevel=2)

        if props.get('CREDENTIALS') is not None:
            credentials = props.pop('CREDENTIALS')
            if isinstance(credentials, str):
                credentials = [credentials]
            if (not _is_sequence(credentials) or not credentials
                or not all(isinstance(c, str) for c in credentials)):
                raise AuthenConfigError(
                    "authen config error:  parameter CREDENTIALS is not a "
                    "string or list of strings")
            new['CREDENTIALS'] = list(credentials)

        if props.get('LOGIN_SESSION_TIMEOUT') is not None:
            new['LOGIN_SESSION_TIMEOUT'] = _parse_timeout(
                props.pop('LOGIN_SESSION_TIMEOUT'))

        # Anything left over was not recognized
        if props:
            raise AuthenConfigError(
                "Invalid option(s) (%s) passed to config"
                % ', '.join(sorted(props)))

        self.options.update(new)

    def protected_runmodes(self, *rules):
        """
        Adds protection rules; rules accumulate over calls.  A rule is
        a run mode name, a compiled regular expression, a callable
        taking the run mode name, or ``':all'``.  Returns all the rules
        given so far.
        """
        for rule in rules:
            if not (isinstance(rule, (str, pattern_type))
                    or callable(rule)):
                raise AuthenConfigError(
                    "Invalid protected run mode rule: %r" % (rule,))
            self.protected.append(rule)
        return list(self.protected)

    def credentials(self):
        return list(self.options.get('CREDENTIALS') or DEFAULT_CREDENTIALS)

    def timeout(self):
        return self.options.get('LOGIN_SESSION_TIMEOUT')


class ConfigRegistry(object):

    """
    Maps application classes to their ``AuthenConfig``.

    A class that has not been configured itself starts from a copy of
    its nearest configured base class.  The registry is meant to be
    filled in before requests are served; it does no locking.
    """

    config_class = AuthenConfig

    def __init__(self):
        self._configs = {}

    def __contains__(self, cls):
        return cls in self._configs

    def for_class(self, cls):
        try:
            return self._configs[cls]
        except KeyError:
            pass
        for base in cls.__mro__[1:]:
            if base in self._configs:
                config = self._configs[base].copy()
                break
        else:
            config = self.config_class()
        self._configs[cls] = config
        return config
