# (c) 2005 Ian Bicking and contributors; written for Paste (http://pythonpaste.org)
# Licensed under the MIT license: http://www.opensource.org/licenses/mit-license.php
"""
A small run-mode servlet.

A run mode is a named entry point of an application, selected by a
request parameter (``rm`` by default).  Subclasses map run mode names
to methods::

    class App(Servlet):
        run_modes = {'start': 'start', 'secret': 'secret'}

        def start(self):
            return 'hello'

        @require_authentication
        def secret(self):
            return 'hello %s' % self.authen.username()

    application = App.wsgi_app()

Objects placed on the class can take part in the request by defining
``__addtoclass__(attr, cls)``; that is called when the class is
created and usually appends a listener to ``cls.listeners``.
Listeners are called as ``listener(event_name, servlet, *args)`` for
the ``prerun`` event (with the selected run mode) and the ``postrun``
event (with the body).  During ``prerun`` the run mode may be replaced
with ``prerun_mode()``.
"""

import logging

from paste import httpexceptions
from paste.request import construct_url, get_cookie_dict, parse_formvars

from wareauthen.cookie import Cookie

__all__ = ['Servlet', 'Continue', 'raise_event', 'require_authentication']

log = logging.getLogger(__name__)


class Continue:
    """
    This class is a singleton (never meant to be instantiated) that
    represents a kind of no-op return from a listener.
    """
    def __init__(self):
        assert False, (
            "Continue cannot be instantiated (use the class object "
            "itself)")


def raise_event(name, actor, *args, **kw):
    """
    Calls each listener of ``actor``; the first one that returns
    something other than ``Continue`` stops the event.
    """
    for listener in actor.listeners:
        value = listener(name, actor, *args, **kw)
        if value is not Continue:
            return value
    return Continue


def require_authentication(func):
    """
    Marks a run mode method as only available to logged in users.
    """
    func.require_authentication = True
    return func


class ClassInitMeta(type):

    def __new__(meta, class_name, bases, new_attrs):
        cls = type.__new__(meta, class_name, bases, new_attrs)
        if hasattr(cls, '__classinit__'):
            cls.__classinit__(new_attrs)
        return cls


class Servlet(object, metaclass=ClassInitMeta):

    mode_param = 'rm'
    start_mode = 'start'
    run_modes = {}
    listeners = []

    @classmethod
    def __classinit__(cls, new_attrs):
        if 'listeners' not in new_attrs:
            cls.listeners = cls.listeners[:]
        for attr, value in list(new_attrs.items()):
            if hasattr(value, '__addtoclass__'):
                value.__addtoclass__(attr, cls)

    def __init__(self, **kw):
        for name, value in kw.items():
            if not hasattr(self.__class__, name):
                raise TypeError(
                    "%s has no attribute %r" % (self.__class__.__name__, name))
            setattr(self, name, value)

    @classmethod
    def wsgi_app(cls, **kw):
        """
        Returns a WSGI application that creates a new servlet for every
        request (servlets keep per-request state on ``self``).
        """
        def servlet_app(environ, start_response):
            return cls(**kw)(environ, start_response)
        return servlet_app

    def __call__(self, environ, start_response):
        try:
            status, headers, app_iter = self._process(environ)
        except httpexceptions.HTTPException as e:
            return e.wsgi_application(environ, start_response)
        start_response(status, headers)
        return app_iter

    def _process(self, environ):
        self.awake(environ)
        body = self.run()
        if self.status.startswith('200') and 'location' in self.headers_out:
            self.status = '302 Found'
        headers = []
        for name, value in self.headers_out.items():
            if isinstance(value, list):
                for v in value:
                    headers.append((name, v))
            else:
                headers.append((name, value))
        for cookie in self._cookies_out.values():
            headers.append(('Set-Cookie', cookie.header()))
        if body is None:
            body = b''
        elif not isinstance(body, bytes):
            body = str(body).encode('utf-8')
        headers.append(('content-length', str(len(body))))
        return self.status, headers, [body]

    def awake(self, environ):
        """
        Sets up the per-request state; called before ``run``.
        """
        self.environ = environ
        self.status = '200 OK'
        self.headers_out = {'content-type': 'text/html; charset=UTF-8'}
        self._cookies_out = {}
        self._run_modes = dict(self.run_modes)
        self._current_runmode = None
        self._prerun_locked = True
        self._session = None
        self.fields = parse_formvars(environ)
        self.cookies = get_cookie_dict(environ)

    def run(self):
        rm = self.param(self.mode_param) or self.start_mode
        self._current_runmode = rm
        self._prerun_locked = False
        try:
            self.prerun(rm)
            raise_event('prerun', self, rm)
        finally:
            self._prerun_locked = True
        rm = self._current_runmode
        handler = self.lookup_run_mode(rm)
        if handler is None:
            raise httpexceptions.HTTPNotFound(
                "No such run mode: %r" % rm)
        log.debug("Running run mode %r", rm)
        body = handler()
        raise_event('postrun', self, body)
        self.postrun(body)
        return body

    def prerun(self, runmode):
        pass

    def postrun(self, body):
        pass

    ############################################################
    ## Run modes
    ############################################################

    def get_current_runmode(self):
        return self._current_runmode

    def prerun_mode(self, runmode):
        """
        Replaces the run mode selected for this request; only allowed
        while the ``prerun`` event is being handled.
        """
        if self._prerun_locked:
            raise RuntimeError(
                "prerun_mode() can only be called during prerun")
        self._current_runmode = runmode

    def add_run_modes(self, **modes):
        """
        Adds run modes for this request only.  Values are method names
        or functions taking the servlet.
        """
        self._run_modes.update(modes)

    def lookup_run_mode(self, runmode):
        """
        Returns the callable for the run mode, or None
        """
        target = self._run_modes.get(runmode)
        if target is None:
            return None
        if isinstance(target, str):
            return getattr(self, target, None)
        return _BoundRunMode(target, self)

    ############################################################
    ## Request
    ############################################################

    def param(self, name, default=None):
        value = self.fields.get(name, default)
        if isinstance(value, list):
            value = value[0] if value else default
        return value

    def has_session(self):
        return ('paste.session.factory' in self.environ
                or 'paste.flup_session_service' in self.environ)

    @property
    def session(self):
        if self._session is None:
            if 'paste.session.factory' in self.environ:
                self._session = self.environ['paste.session.factory']()
            elif 'paste.flup_session_service' in self.environ:
                self._session = (
                    self.environ['paste.flup_session_service'].session)
            else:
                raise AttributeError(
                    "No session middleware is installed")
        return self._session

    def self_url(self):
        return construct_url(self.environ)

    def script_url(self):
        """The path of this request, without the query string"""
        path = (self.environ.get('SCRIPT_NAME', '')
                + self.environ.get('PATH_INFO', ''))
        return path or '/'

    def is_secure(self):
        return self.environ.get('wsgi.url_scheme') == 'https'

    ############################################################
    ## Response
    ############################################################

    def set_header(self, header_name, header_value):
        header_name = header_name.lower()
        if header_name == 'status':
            self.status = header_value
            return
        self.headers_out[header_name] = header_value

    def header_add(self, header_name, header_value):
        header_name = header_name.lower()
        if header_name == 'status':
            self.status = header_value
            return
        if header_name in self.headers_out:
            if not isinstance(self.headers_out[header_name], list):
                self.headers_out[header_name] = [
                    self.headers_out[header_name], header_value]
            else:
                self.headers_out[header_name].append(header_value)
        else:
            self.headers_out[header_name] = header_value

    def set_cookie(self, cookie_name, value, path='/', expires=None,
                   secure=False):
        self._cookies_out[cookie_name] = Cookie(
            cookie_name, value, path=path, expires=expires, secure=secure)


class _BoundRunMode(object):

    def __init__(self, func, servlet):
        self.func = func
        self.servlet = servlet

    def __getattr__(self, attr):
        return getattr(self.func, attr)

    def __call__(self):
        return self.func(self.servlet)
