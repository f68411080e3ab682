# (c) 2005 Ian Bicking and contributors; written for Paste (http://pythonpaste.org)
# Licensed under the MIT license: http://www.opensource.org/licenses/mit-license.php
"""
The built-in login page.

Used by the ``authen_login`` run mode when no ``LOGIN_RUNMODE`` or
``LOGIN_DESTINATION`` is configured.  A custom login page should keep
the same form fields (the credential fields, ``destination`` and the
run mode field), so starting from ``login_box`` is recommended.
"""

from html import escape

__all__ = ['login_box', 'login_page', 'logout_page', 'styles']

box_template = """\
<div class="login">
  <div class="title">
    <h4>Login</h4>
  </div>

  <div class="content">
    <form name="loginform" method="post" action="%(action)s">
      <ul class="message">%(messages)s</ul>
      <fieldset>
        <label for="%(username)s">Username</label><input id="authen_loginfield" tabindex="1" type="text" name="%(username)s" size="30" value="" />
        <label for="%(password)s">Password</label><input id="authen_passwordfield" tabindex="2" type="password" name="%(password)s" size="30" />
        <div class="buttons">
          <input type="hidden" name="destination" value="%(destination)s" />
          <input type="hidden" name="%(mode_param)s" value="%(runmode)s" />
          <input tabindex="3" type="submit" name="login" value="Log in" class="button" />
          <input tabindex="4" type="reset" name="resetlogin" value="Reset" class="button" />
        </div>
      </fieldset>
    </form>
  </div>
</div>
"""

page_template = """\
<html>
  <head>
    <title>%(title)s</title>
    <style type="text/css">
%(styles)s
    </style>
  </head>
  <body%(onload)s>
%(content)s
  </body>
</html>
"""

styles = """\
body {
    font-family: arial, helvetica, sans-serif;
    background-color: #ddd;
}

div, fieldset {
    margin: 0;
    padding: 0;
    border: none;
}

div.login {
    width: 25em;
    margin: 5em auto;
    padding: 2em;
    font-size: 80%;
    font-weight: bold;
}

div.login .title {
    background: green;
    border-radius: 12px 12px 0 0;
    border: 1px solid black;
    border-bottom: none;
    text-align: center;
}

div.login .content {
    background: white;
    padding: 0.8em;
    border-radius: 0 0 12px 12px;
    border: 1px solid black;
    border-top: none;
}

div.login h4 {
    margin: 0;
    padding: .3em .6em;
    color: #fff;
    font-size: 150%;
}

div.login label {
    display: block;
    padding: 1em 0 0 0;
}

div.login div.buttons {
    display: block;
    margin: 8px 4px;
    width: 100%;
    text-align: center;
}

#authen_loginfield:focus, #authen_passwordfield:focus {
    background-color: #ffc;
    color: #000;
}

ul.message {
    margin-top: 0;
    margin-bottom: 0;
    list-style: none;
}

ul.message li {
    text-indent: -2em;
    padding: 0px;
    margin: 0px;
}

ul.message li.warning {
    color: red;
}
"""


def login_box(action, destination, runmode, credentials, attempts=0,
              mode_param='rm'):
    if attempts:
        messages = ('<li class="warning">Invalid username or password'
                    '<br />(login attempt %d)</li>' % attempts)
    else:
        messages = ('<li>Please enter your username and password in the '
                    'fields below.</li>')
    password = credentials[1] if len(credentials) > 1 else 'authen_password'
    return box_template % {
        'action': escape(action),
        'messages': messages,
        'username': escape(credentials[0]),
        'password': escape(password),
        'destination': escape(destination or ''),
        'mode_param': escape(mode_param),
        'runmode': escape(runmode or ''),
        }


def login_page(box, username_field):
    return page_template % {
        'title': 'Login',
        'styles': styles,
        'onload': (' onload="document.loginform.%s.focus()"'
                   % escape(username_field)),
        'content': box,
        }


def logout_page():
    return page_template % {
        'title': 'Logged out',
        'styles': styles,
        'onload': '',
        'content': ('<div class="login"><div class="title"><h4>Logged out'
                    '</h4></div><div class="content">You have been logged '
                    'out.</div></div>'),
        }
