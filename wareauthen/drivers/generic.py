# (c) 2005 Ian Bicking and contributors; written for Paste (http://pythonpaste.org)
# Licensed under the MIT license: http://www.opensource.org/licenses/mit-license.php
"""
Generic driver: credentials checked against Python data.

The single option is one of:

* a dictionary of ``username: password``.  A password may be given
  in filtered form by prefixing the filter chain, as in
  ``{'user1': 'md5:202cb962ac59075b964b07152d234b70'}``;
* a list of credential lists, each matched position by position
  against the submitted credentials (useful with more than two
  credential fields);
* a callable given the credentials and returning the username (or a
  false value).
"""

from wareauthen import filters
from wareauthen.drivers import Driver
from wareauthen.errors import AuthenConfigError


class GenericDriver(Driver):

    def initialize(self):
        if len(self.options) != 1:
            raise AuthenConfigError(
                "The Generic driver takes exactly one option (a "
                "dictionary, list of credentials or callable), got %r"
                % (self.options,))
        source = self.options[0]
        if not (isinstance(source, (dict, list, tuple)) or callable(source)):
            raise AuthenConfigError(
                "Unsupported option for the Generic driver: %r" % (source,))
        self.source = source

    def verify_credentials(self, *credentials):
        source = self.source
        if isinstance(source, dict):
            return self._check_dict(source, *credentials)
        elif isinstance(source, (list, tuple)):
            for entry in source:
                if list(entry) == list(credentials):
                    return credentials[0]
            return None
        return source(*credentials) or None

    def _check_dict(self, users, username=None, password=None, *rest):
        if not username or username not in users or password is None:
            return None
        stored = users[username]
        filter_chain, digest = filters.strip_filter(stored)
        if filter_chain and filters.known_filter(filter_chain):
            matched = self.check_filtered(filter_chain, password, digest)
        else:
            matched = stored == password
        if matched:
            return username
        return None
