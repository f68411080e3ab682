import re

import pytest

from wareauthen.authentication import Authentication, AuthenPlugin
from wareauthen.config import AuthenConfig
from wareauthen.drivers.dummy import DummyDriver
from wareauthen.drivers.generic import GenericDriver
from wareauthen.errors import AuthenConfigError, BackendNotFound, DriverError
from wareauthen.servlet import Servlet, require_authentication
from wareauthen.stores.cookie import CookieStore
from wareauthen.stores.session import SessionStore

from servlet_helpers import make_servlet, response_cookies


class App(Servlet):
    authen = AuthenPlugin()
    run_modes = {'start': 'start', 'private': 'private', 'other': 'other'}

    def start(self):
        return 'start'

    @require_authentication
    def private(self):
        return 'private'

    def other(self):
        return 'other'

App.authen.config(
    DRIVER=['Generic', {'user1': '123', 'user2': 'abc'}],
    STORE=['Cookie', {'SECRET': 'test secret'}],
    )


class IdleApp(App):
    pass

IdleApp.authen.config(LOGIN_SESSION_TIMEOUT={'IDLE_FOR': 900})


class EveryApp(App):
    pass

EveryApp.authen.config(LOGIN_SESSION_TIMEOUT={'IDLE_FOR': '1h',
                                              'EVERY': '1d'})


def login_params(username='user1', password='123'):
    return {'authen_username': username, 'authen_password': password}


def signed_cookie(cls, **data):
    servlet = make_servlet(cls)
    return {'CAPAUTH_DATA': servlet.authen.store().encode(data)}


def test_plugin_access():
    assert isinstance(App.authen, AuthenConfig)
    servlet = make_servlet(App)
    authen = servlet.authen
    assert isinstance(authen, Authentication)
    assert servlet.authen is authen
    assert authen.servlet is servlet
    assert make_servlet(App).authen is not authen


def test_not_logged_in():
    servlet = make_servlet(App)
    authen = servlet.authen
    assert not authen.is_authenticated()
    assert authen.username() is None
    assert authen.login_attempts() == 0
    assert not authen.is_new_login()
    assert not authen.is_login_timeout()
    assert authen.last_login() is None
    assert authen.last_access() is None


def test_login(clock):
    servlet = make_servlet(App, login_params())
    authen = servlet.authen
    assert authen.is_authenticated()
    assert authen.username() == 'user1'
    assert authen.login_attempts() == 0
    assert authen.is_new_login()
    assert authen.last_login() == clock.now
    assert authen.last_access() == clock.now


def test_login_persists(clock):
    servlet = make_servlet(App, login_params())
    assert servlet.authen.username() == 'user1'
    servlet.authen.postrun_callback()
    cookies = response_cookies(servlet)
    clock.advance(10)
    servlet = make_servlet(App, cookies=cookies)
    assert servlet.authen.username() == 'user1'
    assert not servlet.authen.is_new_login()
    assert servlet.authen.last_login() == clock.now - 10


def test_failed_logins():
    cookies = {}
    for attempt in 1, 2, 3:
        servlet = make_servlet(App, login_params(password='wrong'),
                               cookies=cookies)
        authen = servlet.authen
        assert not authen.is_authenticated()
        assert authen.login_attempts() == attempt
        authen.postrun_callback()
        cookies = response_cookies(servlet)
    servlet = make_servlet(App, login_params(), cookies=cookies)
    assert servlet.authen.is_authenticated()
    assert servlet.authen.login_attempts() == 0


def test_initialize_once():
    servlet = make_servlet(App, login_params(password='wrong'))
    authen = servlet.authen
    authen.initialize()
    authen.initialize()
    assert authen.login_attempts() == 1
    assert authen.login_attempts() == 1
    assert not authen.is_authenticated()


def test_switch_user():
    cookies = signed_cookie(App, username='user1', login_attempts='0')
    servlet = make_servlet(App, login_params('user2', 'abc'), cookies=cookies)
    assert servlet.authen.username() == 'user2'
    assert servlet.authen.is_new_login()


def test_failed_switch_logs_out():
    cookies = signed_cookie(App, username='user1', login_attempts='0')
    servlet = make_servlet(App, login_params('user2', 'wrong'),
                           cookies=cookies)
    assert not servlet.authen.is_authenticated()
    assert servlet.authen.login_attempts() == 1


def test_logout():
    cookies = signed_cookie(App, username='user1', login_attempts='0')
    servlet = make_servlet(App, cookies=cookies)
    authen = servlet.authen
    assert authen.is_authenticated()
    authen.logout()
    assert not authen.is_authenticated()
    authen.postrun_callback()
    data = authen.store().decode(response_cookies(servlet)['CAPAUTH_DATA'])
    assert data == {}


def test_idle_timeout(clock):
    now = clock.now
    cookies = signed_cookie(IdleApp, username='user1', last_login=now - 5000,
                            last_access=now - 899)
    servlet = make_servlet(IdleApp, cookies=cookies)
    assert servlet.authen.is_authenticated()
    assert not servlet.authen.is_login_timeout()

    clock.advance(1)
    servlet = make_servlet(IdleApp, cookies=cookies)
    assert servlet.authen.is_login_timeout()
    assert not servlet.authen.is_authenticated()
    assert servlet.authen.username() is None


def test_missing_access_time_times_out(clock):
    cookies = signed_cookie(IdleApp, username='user1')
    servlet = make_servlet(IdleApp, cookies=cookies)
    assert servlet.authen.is_login_timeout()


def test_new_login_does_not_time_out(clock):
    servlet = make_servlet(IdleApp, login_params())
    assert servlet.authen.is_authenticated()
    assert not servlet.authen.is_login_timeout()


def test_every_timeout(clock):
    now = clock.now
    # active recently, but logged in too long ago
    cookies = signed_cookie(EveryApp, username='user1',
                            last_login=now - 86400, last_access=now - 60)
    servlet = make_servlet(EveryApp, cookies=cookies)
    assert servlet.authen.is_login_timeout()
    cookies = signed_cookie(EveryApp, username='user1',
                            last_login=now - 86399, last_access=now - 60)
    servlet = make_servlet(EveryApp, cookies=cookies)
    assert not servlet.authen.is_login_timeout()
    assert servlet.authen.is_authenticated()


def test_custom_timeout(clock):
    class CustomApp(App):
        pass
    seen = []

    def too_old(authen):
        seen.append(authen.username())
        return authen.username() == 'user2'
    CustomApp.authen.config(LOGIN_SESSION_TIMEOUT={'CUSTOM': too_old})

    servlet = make_servlet(
        CustomApp, cookies=signed_cookie(CustomApp, username='user1'))
    assert servlet.authen.is_authenticated()
    servlet = make_servlet(
        CustomApp, cookies=signed_cookie(CustomApp, username='user2'))
    assert not servlet.authen.is_authenticated()
    assert servlet.authen.is_login_timeout()
    assert seen == ['user1', 'user2']


def test_timeout_order(clock):
    class OrderApp(App):
        pass
    calls = []

    def never(authen):
        calls.append(authen.username())
        return False
    OrderApp.authen.config(LOGIN_SESSION_TIMEOUT={
        'IDLE_FOR': 900, 'EVERY': 3600, 'CUSTOM': never})
    now = clock.now

    # idle too long; the other rules are not consulted
    cookies = signed_cookie(OrderApp, username='user1',
                            last_login=now - 60, last_access=now - 1000)
    servlet = make_servlet(OrderApp, cookies=cookies)
    assert servlet.authen.is_login_timeout()
    assert not servlet.authen.is_authenticated()
    assert calls == []

    # active, but logged in too long ago
    cookies = signed_cookie(OrderApp, username='user1',
                            last_login=now - 3600, last_access=now - 10)
    servlet = make_servlet(OrderApp, cookies=cookies)
    assert servlet.authen.is_login_timeout()
    assert calls == []

    cookies = signed_cookie(OrderApp, username='user1',
                            last_login=now - 60, last_access=now - 10)
    servlet = make_servlet(OrderApp, cookies=cookies)
    assert not servlet.authen.is_login_timeout()
    assert servlet.authen.is_authenticated()
    assert calls == ['user1']


def test_timestamps(clock):
    cookies = signed_cookie(App, username='user1', last_login=100,
                            last_access=200)
    servlet = make_servlet(App, cookies=cookies)
    authen = servlet.authen
    assert authen.last_login() == 100
    assert authen.last_access(300) == 200
    assert authen.last_access() == 300
    assert authen.last_login(400) == 100
    assert authen.last_login() == 400


def test_default_store():
    class DefaultApp(Servlet):
        authen = AuthenPlugin()
    servlet = make_servlet(DefaultApp)
    assert isinstance(servlet.authen.store(), CookieStore)
    servlet = make_servlet(
        DefaultApp, **{'paste.session.factory': lambda: {}})
    assert isinstance(servlet.authen.store(), SessionStore)


def test_default_driver():
    class DefaultApp(Servlet):
        authen = AuthenPlugin()
    DefaultApp.authen.config(STORE=['Cookie', {'SECRET': 'x'}])
    servlet = make_servlet(DefaultApp, {'authen_username': 'anyone'})
    drivers = servlet.authen.drivers()
    assert len(drivers) == 1
    assert isinstance(drivers[0], DummyDriver)
    assert servlet.authen.username() == 'anyone'


def test_several_drivers():
    class ManyApp(App):
        pass
    ManyApp.authen.config(DRIVER=[
        ['Generic', {'user1': '123'}],
        ['Generic', [['user9', '999']]],
        ])
    servlet = make_servlet(ManyApp)
    drivers = servlet.authen.drivers()
    assert [type(d) for d in drivers] == [GenericDriver, GenericDriver]
    assert drivers[0].authen is servlet.authen
    servlet = make_servlet(ManyApp, login_params('user9', '999'))
    assert servlet.authen.username() == 'user9'


def test_missing_backends():
    class MissingApp(App):
        pass
    MissingApp.authen.config(DRIVER='Kerberos', STORE='Memcached')
    servlet = make_servlet(MissingApp, login_params())
    with pytest.raises(BackendNotFound):
        servlet.authen.store()
    with pytest.raises(BackendNotFound):
        servlet.authen.drivers()


def test_broken_driver(tmp_path):
    class BrokenApp(App):
        pass
    BrokenApp.authen.config(
        DRIVER=['HTPasswd', str(tmp_path / 'missing.htpasswd')])
    servlet = make_servlet(BrokenApp, login_params())
    with pytest.raises(DriverError):
        servlet.authen.is_authenticated()


def test_instance_config():
    servlet = make_servlet(App, login_params('user3', 'xyz'))
    authen = servlet.authen
    authen.config(DRIVER=['Generic', {'user3': 'xyz'}])
    assert authen.username() == 'user3'
    # the class configuration is untouched
    assert App.authen.get('DRIVER') == [
        ['Generic', {'user1': '123', 'user2': 'abc'}]]
    with pytest.raises(AuthenConfigError):
        authen.config(CREDENTIALS=['user'])


def test_credentials():
    class ThreeApp(App):
        pass
    ThreeApp.authen.config(
        CREDENTIALS=['user', 'pass', 'domain'],
        DRIVER=['Generic', [['user1', '123', 'example.com']]])
    servlet = make_servlet(ThreeApp, {'user': 'user1', 'pass': '123',
                                      'domain': 'example.com'})
    assert servlet.authen.credentials() == ['user', 'pass', 'domain']
    assert servlet.authen.username() == 'user1'
    servlet = make_servlet(ThreeApp, {'user': 'user1', 'pass': '123',
                                      'domain': 'example.org'})
    assert servlet.authen.username() is None
    assert servlet.authen.login_attempts() == 1


def test_protected_runmodes():
    class ProtectedApp(App):
        pass
    ProtectedApp.authen.protected_runmodes('exact')
    ProtectedApp.authen.protected_runmodes(
        re.compile('^admin_'), lambda rm: rm.endswith('_secret'))
    servlet = make_servlet(ProtectedApp)
    authen = servlet.authen
    assert authen.protected_runmodes()[0] == 'exact'
    assert len(authen.protected_runmodes()) == 3
    assert authen.is_protected_runmode('exact')
    assert not authen.is_protected_runmode('exactly')
    assert authen.is_protected_runmode('admin_users')
    assert not authen.is_protected_runmode('not_admin_users')
    assert authen.is_protected_runmode('top_secret')
    # marked with require_authentication
    assert authen.is_protected_runmode('private')
    assert not authen.is_protected_runmode('start')
    assert not authen.is_protected_runmode('other')
    assert not authen.is_protected_runmode('no_such_mode')


def test_all_runmodes_protected():
    class AllApp(App):
        pass
    AllApp.authen.protected_runmodes(':all')
    servlet = make_servlet(AllApp)
    authen = servlet.authen
    for runmode in ['start', 'other', 'anything']:
        assert authen.is_protected_runmode(runmode)


def test_login_box():
    servlet = make_servlet(App, {'rm': 'private'})
    box = servlet.authen.login_box()
    assert 'name="authen_username"' in box
    assert 'name="authen_password"' in box
    assert ('name="destination" value="http://localhost/?rm=private"'
            in box)
    assert 'Please enter your username' in box
    assert servlet.authen.login_styles() in servlet.authen.authen_login_runmode(
        servlet)


def test_login_box_attempts():
    servlet = make_servlet(App, dict(login_params(password='wrong'),
                                     destination='/somewhere'))
    box = servlet.authen.login_box()
    assert 'login attempt 1' in box
    assert 'value="/somewhere"' in box


def test_protected_runmodes_frozen():
    servlet = make_servlet(App)
    authen = servlet.authen
    authen.protected_runmodes('other')
    assert authen.is_protected_runmode('other')
    authen.initialize()
    with pytest.raises(AuthenConfigError):
        authen.protected_runmodes('start')
    assert not authen.is_protected_runmode('start')
    # the class rules are untouched
    assert App.authen.protected_runmodes() == []


def test_username_with_nul_refused(caplog):
    class AnyoneApp(Servlet):
        authen = AuthenPlugin()
    AnyoneApp.authen.config(STORE=['Cookie', {'SECRET': 'x'}])
    servlet = make_servlet(AnyoneApp, {'authen_username': 'user\0name',
                                       'authen_password': 'x'})
    assert not servlet.authen.is_authenticated()
    assert servlet.authen.login_attempts() == 1
    assert 'Ignoring username' in caplog.text

    class CallableApp(App):
        pass
    CallableApp.authen.config(
        DRIVER=['Generic', lambda username, password: 'user\0name'])
    servlet = make_servlet(CallableApp, login_params())
    assert servlet.authen.username() is None
    servlet.authen.postrun_callback()
    assert 'CAPAUTH_DATA' in response_cookies(servlet)
