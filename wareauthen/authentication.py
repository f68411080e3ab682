# (c) 2005 Ian Bicking and contributors; written for Paste (http://pythonpaste.org)
# Licensed under the MIT license: http://www.opensource.org/licenses/mit-license.php
"""
Authentication for run-mode servlets.

Put an ``AuthenPlugin`` on a servlet class and configure it through the
class::

    class App(Servlet):
        authen = AuthenPlugin()
        run_modes = {'start': 'start', 'private': 'private'}

        def start(self):
            return 'public page'

        @require_authentication
        def private(self):
            return 'hello %s' % self.authen.username()

    App.authen.config(
        DRIVER=['Generic', {'user1': '123'}],
        STORE=['Cookie', {'SECRET': 'not really secret'}],
        LOGIN_SESSION_TIMEOUT={'IDLE_FOR': '15m'},
        )
    App.authen.protected_runmodes(re.compile('^admin_'))

On the class, ``App.authen`` is the class's ``AuthenConfig``.  On a
servlet instance it is an ``Authentication`` object, created when
first used and kept for the rest of the request.  The plugin hooks
into the servlet's ``prerun`` event: it logs the user in if credentials
were submitted, handles ``authen_logout``, expires timed out logins and
sends unauthenticated users to the login page when they ask for a
protected run mode.
"""

import logging
import time
import weakref

from wareauthen import loginpage
from wareauthen.config import ALL_RUNMODES, ConfigRegistry, pattern_type
from wareauthen.drivers import get_driver_class
from wareauthen.errors import AuthenConfigError
from wareauthen.servlet import Continue
from wareauthen.stores import get_store_class

__all__ = ['Authentication', 'AuthenPlugin']

log = logging.getLogger(__name__)


def _as_int(value):
    # stores may hand values back as strings
    if not value:
        return 0
    try:
        return int(value)
    except ValueError:
        return int(float(value))


class Authentication(object):

    """
    The authentication state of one request.

    Nothing happens until the state is first asked for: ``initialize``
    (called by every query method) reads the credentials, consults the
    drivers and applies the timeout rules, once per request.
    """

    # seconds since the epoch; replaced in tests
    clock = staticmethod(time.time)

    logout_param = 'authen_logout'
    destination_param = 'destination'

    def __init__(self, servlet, config):
        self._servlet = weakref.ref(servlet)
        self._config = config
        self._own_config = False
        self._drivers = None
        self._store = None
        self.initialized = False
        self._now = None
        self._is_new_login = False
        self._is_login_timeout = False

    def __repr__(self):
        return '<%s for %r>' % (self.__class__.__name__, self.servlet)

    @property
    def servlet(self):
        return self._servlet()

    ############################################################
    ## Configuration
    ############################################################

    def _writable_config(self):
        # changes made through an instance only apply to this request
        if not self._own_config:
            self._config = self._config.copy()
            self._own_config = True
        return self._config

    def _check_not_initialized(self, method):
        if self.initialized:
            raise AuthenConfigError(
                "Calling %s after the Authentication object has "
                "already been initialized" % method)

    def config(self, *args, **kw):
        self._check_not_initialized('config')
        self._writable_config().config(*args, **kw)

    def protected_runmodes(self, *rules):
        if not rules:
            return list(self._config.protected)
        self._check_not_initialized('protected_runmodes')
        return self._writable_config().protected_runmodes(*rules)

    def is_protected_runmode(self, runmode):
        """
        True if a user has to be logged in to use ``runmode``, either
        because a protection rule matches it or because its method is
        marked with ``require_authentication``.
        """
        runmode = runmode or ''
        for rule in self._config.protected:
            if isinstance(rule, pattern_type):
                if rule.search(runmode):
                    return True
            elif callable(rule):
                if rule(runmode):
                    return True
            elif rule == ALL_RUNMODES:
                return True
            elif rule == runmode:
                return True
        handler = self.servlet.lookup_run_mode(runmode)
        return bool(getattr(handler, 'require_authentication', False))

    def credentials(self):
        return self._config.credentials()

    ############################################################
    ## Backends
    ############################################################

    def drivers(self):
        if self._drivers is None:
            entries = self._config.get('DRIVER') or [['Dummy']]
            drivers = []
            for entry in entries:
                driver_class = get_driver_class(entry[0])
                drivers.append(driver_class(self, *entry[1:]))
            self._drivers = drivers
        return list(self._drivers)

    def store(self):
        if self._store is None:
            entry = self._config.get('STORE')
            if entry:
                name, options = entry[0], entry[1:]
            elif self.servlet.has_session():
                name, options = 'Session', []
            else:
                name, options = 'Cookie', []
            store_class = get_store_class(name)
            self._store = store_class(self, *options)
        return self._store

    ############################################################
    ## State
    ############################################################

    def initialize(self):
        if self.initialized:
            return
        self.initialized = True
        self._now = now = int(self.clock())
        servlet = self.servlet
        credentials = [servlet.param(name) for name in self.credentials()]
        store = self.store()

        # a logged in user may log in again, possibly as someone else
        if credentials[0]:
            if store.fetch('username'):
                store.clear()
            for driver in self.drivers():
                username = driver.verify_credentials(*credentials)
                if username and '\0' in str(username):
                    log.warning("Ignoring username %r from %r",
                                username, driver)
                    username = None
                if username:
                    store.save(username=username, login_attempts=0,
                               last_login=now, last_access=now)
                    self._is_new_login = True
                    log.debug("User %r logged in (%r)", username, driver)
                    break
            else:
                attempts = _as_int(store.fetch('login_attempts')) + 1
                store.save(login_attempts=attempts)
                log.debug("Failed login for %r (attempt %d)",
                          credentials[0], attempts)

        timeout = self._config.timeout()
        if timeout and not self._is_new_login and store.fetch('username'):
            if self._timed_out(timeout, now):
                self._is_login_timeout = True
                log.debug("Login of %r timed out", store.fetch('username'))
                store.clear()

    def _timed_out(self, timeout, now):
        # idle time is checked first, then time since login, then CUSTOM
        store = self.store()
        idle_for = timeout.get('IDLE_FOR')
        if idle_for and now - _as_int(store.fetch('last_access')) >= idle_for:
            return True
        every = timeout.get('EVERY')
        if every and now - _as_int(store.fetch('last_login')) >= every:
            return True
        custom = timeout.get('CUSTOM')
        if custom and custom(self):
            return True
        return False

    def is_authenticated(self):
        return bool(self.username())

    def username(self):
        self.initialize()
        return self.store().fetch('username')

    def login_attempts(self):
        self.initialize()
        return _as_int(self.store().fetch('login_attempts'))

    def is_new_login(self):
        self.initialize()
        return self._is_new_login

    def is_login_timeout(self):
        self.initialize()
        return self._is_login_timeout

    def _timestamp(self, name, new):
        self.initialize()
        if not self.username():
            return None
        store = self.store()
        old = store.fetch(name)
        if new:
            store.save(**{name: new})
        if old is None:
            return None
        return _as_int(old)

    def last_login(self, new=None):
        """
        The time of the last login, in seconds since the epoch; a
        ``new`` value replaces it
        """
        return self._timestamp('last_login', new)

    def last_access(self, new=None):
        return self._timestamp('last_access', new)

    def logout(self):
        self.initialize()
        store = self.store()
        username = store.fetch('username')
        store.clear()
        if username:
            log.info("User %r logged out", username)

    ############################################################
    ## Request handling
    ############################################################

    def redirect_after_login(self):
        servlet = self.servlet
        runmode = self._config.get('POST_LOGIN_RUNMODE')
        if runmode:
            servlet.prerun_mode(runmode)
            return
        location = (self._config.get('POST_LOGIN_DESTINATION')
                    or servlet.param(self.destination_param))
        if location:
            servlet.header_add('location', location)
            servlet.prerun_mode('authen_dummy_redirect')
        # otherwise the requested run mode just runs

    def redirect_to_login(self):
        servlet = self.servlet
        runmode = self._config.get('LOGIN_RUNMODE')
        if runmode:
            servlet.prerun_mode(runmode)
        elif self._config.get('LOGIN_DESTINATION'):
            servlet.header_add('location',
                               self._config.get('LOGIN_DESTINATION'))
            servlet.prerun_mode('authen_dummy_redirect')
        else:
            servlet.prerun_mode('authen_login')

    def redirect_to_logout(self):
        servlet = self.servlet
        self.logout()
        runmode = self._config.get('LOGOUT_RUNMODE')
        if runmode:
            servlet.prerun_mode(runmode)
        else:
            servlet.header_add(
                'location', self._config.get('LOGOUT_DESTINATION') or '/')
            servlet.prerun_mode('authen_dummy_redirect')

    def setup_runmodes(self):
        """
        Adds the built-in ``authen_login`` and ``authen_logout`` run
        modes (unless the application has its own login or logout
        page) and ``authen_dummy_redirect``.
        """
        modes = {'authen_dummy_redirect': self.authen_dummy_redirect}
        if not (self._config.get('LOGIN_RUNMODE')
                or self._config.get('LOGIN_DESTINATION')):
            modes['authen_login'] = self.authen_login_runmode
        if not (self._config.get('LOGOUT_RUNMODE')
                or self._config.get('LOGOUT_DESTINATION')):
            modes['authen_logout'] = self.authen_logout_runmode
        self.servlet.add_run_modes(**modes)

    def prerun_callback(self):
        servlet = self.servlet
        self.initialize()
        self.setup_runmodes()
        if servlet.param(self.logout_param):
            self.redirect_to_logout()
            return
        if self.is_new_login():
            self.redirect_after_login()
            return
        if self._config.timeout():
            self.last_access(self._now)
        runmode = servlet.get_current_runmode()
        if self.is_protected_runmode(runmode) and not self.is_authenticated():
            log.debug("Run mode %r needs a login", runmode)
            self.redirect_to_login()

    def postrun_callback(self, body=None):
        if self._store is not None:
            self._store.postrun(self.servlet)

    ############################################################
    ## Login page
    ############################################################

    def login_box(self):
        """
        The HTML of the login form, for use in a custom login page
        """
        servlet = self.servlet
        destination = (servlet.param(self.destination_param)
                       or servlet.self_url())
        return loginpage.login_box(
            action=servlet.script_url(),
            destination=destination,
            runmode=servlet.get_current_runmode(),
            credentials=self.credentials(),
            attempts=self.login_attempts(),
            mode_param=servlet.mode_param)

    def login_styles(self):
        return loginpage.styles

    def authen_login_runmode(self, servlet):
        return loginpage.login_page(self.login_box(), self.credentials()[0])

    def authen_logout_runmode(self, servlet):
        self.logout()
        return loginpage.logout_page()

    def authen_dummy_redirect(self, servlet):
        return ''


class AuthenPlugin(object):

    """
    Descriptor that gives a servlet class its authentication.

    ``registry`` holds the configuration of each class; by default
    every plugin has its own.  Subclasses of a configured class start
    from a copy of its configuration.
    """

    authentication_class = Authentication

    def __init__(self, registry=None):
        if registry is None:
            registry = ConfigRegistry()
        self.registry = registry
        self.attr = None

    def __addtoclass__(self, attr, cls):
        self.attr = attr
        cls.listeners.append(self.respond_event)

    def __get__(self, obj, cls=None):
        if obj is None:
            return self.registry.for_class(cls)
        authen = obj.__dict__.get(self.attr)
        if authen is None:
            authen = self.authentication_class(
                obj, self.registry.for_class(obj.__class__))
            obj.__dict__[self.attr] = authen
        return authen

    def respond_event(self, name, servlet, *args):
        if name == 'prerun':
            self.__get__(servlet, servlet.__class__).prerun_callback()
        elif name == 'postrun':
            self.__get__(servlet, servlet.__class__).postrun_callback(*args)
        return Continue
