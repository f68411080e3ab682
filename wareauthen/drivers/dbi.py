# (c) 2005 Ian Bicking and contributors; written for Paste (http://pythonpaste.org)
# Licensed under the MIT license: http://www.opensource.org/licenses/mit-license.php
"""
DBI driver: credentials checked against a database table.

Works with any DB-API 2 connection.  Options (as a dictionary or
name/value pairs):

``DBH``
    The database connection.

``TABLE`` or ``TABLES``
    The table name, or a list of tables (joined in the constraints).

``CONSTRAINTS``
    A dictionary of ``column: value``, turned into the ``WHERE``
    clause.  A value of ``'__CREDENTIAL_1__'`` stands for the first
    submitted credential, ``'__CREDENTIAL_2__'`` for the second, and
    so on; other values are used as they are.  A column may carry a
    filter, which is applied to the value before the query is run
    (``'md5:users.password': '__CREDENTIAL_2__'``).

``COLUMNS``
    A dictionary like ``CONSTRAINTS``, but the columns are fetched and
    compared in Python.  This is needed for filters that depend on the
    stored value, like ``crypt``.

``PARAMSTYLE``
    The DB-API parameter style of the connection's module: ``qmark``
    (the default), ``format``, ``pyformat``, ``named`` or ``numeric``.

Example::

    DRIVER=['DBI', {
        'DBH': connection,
        'TABLE': 'users',
        'CONSTRAINTS': {
            'users.name': '__CREDENTIAL_1__',
            'md5_hex:users.password': '__CREDENTIAL_2__',
        },
    }]

The username (the first credential) is returned if a row matches.
"""

import logging
import re

from wareauthen import filters
from wareauthen.drivers import Driver
from wareauthen.errors import AuthenConfigError

log = logging.getLogger(__name__)

_credential_re = re.compile(r'^__CREDENTIAL_(\d+)__$')
_field_re = re.compile(r'^[A-Za-z_][\w.]*$')
_paramstyles = ('qmark', 'format', 'pyformat', 'named', 'numeric')


class DBIDriver(Driver):

    def initialize(self):
        options = self.find_options()
        self.dbh = options.pop('DBH', None)
        if self.dbh is None:
            raise AuthenConfigError("The DBI driver requires a DBH option")
        tables = options.pop('TABLES', None) or options.pop('TABLE', None)
        options.pop('TABLE', None)
        if isinstance(tables, str):
            tables = [tables]
        if not tables:
            raise AuthenConfigError(
                "The DBI driver requires a TABLE or TABLES option")
        self.tables = list(tables)
        self.constraints = options.pop('CONSTRAINTS', None) or {}
        self.columns = options.pop('COLUMNS', None) or {}
        if not self.constraints and not self.columns:
            raise AuthenConfigError(
                "The DBI driver requires CONSTRAINTS or COLUMNS")
        self.paramstyle = options.pop('PARAMSTYLE', 'qmark')
        if self.paramstyle not in _paramstyles:
            raise AuthenConfigError(
                "Unknown PARAMSTYLE for the DBI driver: %r" % self.paramstyle)
        if options:
            raise AuthenConfigError(
                "Invalid option(s) (%s) passed to the DBI driver"
                % ', '.join(sorted(options)))
        for field in list(self.constraints) + list(self.columns) + self.tables:
            if not _field_re.match(filters.strip_filter(field)[1]):
                raise AuthenConfigError(
                    "Invalid table or column name for the DBI driver: %r"
                    % field)

    def credential_value(self, value, credentials):
        """
        Replaces a ``__CREDENTIAL_n__`` placeholder with the credential
        """
        if isinstance(value, str):
            match = _credential_re.match(value)
            if match:
                index = int(match.group(1)) - 1
                if index < 0 or index >= len(credentials):
                    raise AuthenConfigError(
                        "%s refers to a credential that is not configured"
                        % value)
                return credentials[index]
        return value

    def placeholder(self, position):
        if self.paramstyle == 'qmark':
            return '?'
        elif self.paramstyle == 'format':
            return '%s'
        elif self.paramstyle == 'numeric':
            return ':%d' % (position + 1)
        elif self.paramstyle == 'named':
            return ':p%d' % position
        return '%%(p%d)s' % position

    def build_query(self, credentials):
        """
        Returns ``(sql, params, columns)``; ``columns`` is the list of
        ``(filters, plain_value)`` to check against the fetched row.
        """
        where = []
        values = []
        for field in sorted(self.constraints):
            filter_chain, column = filters.strip_filter(field)
            value = self.credential_value(self.constraints[field], credentials)
            value = self.filter(filter_chain, value)
            where.append('%s = %s' % (column, self.placeholder(len(values))))
            values.append(value)
        select = []
        checks = []
        for field in sorted(self.columns):
            filter_chain, column = filters.strip_filter(field)
            select.append(column)
            checks.append(
                (filter_chain,
                 self.credential_value(self.columns[field], credentials)))
        sql = 'SELECT %s FROM %s' % (
            ', '.join(select) or 'COUNT(*)', ', '.join(self.tables))
        if where:
            sql += ' WHERE ' + ' AND '.join(where)
        if self.paramstyle in ('pyformat', 'named'):
            params = dict(('p%d' % i, v) for i, v in enumerate(values))
        else:
            params = tuple(values)
        return sql, params, checks

    def verify_credentials(self, *credentials):
        if not credentials or not credentials[0]:
            return None
        if any(c is None for c in credentials):
            return None
        sql, params, checks = self.build_query(credentials)
        log.debug("DBI driver query: %s", sql)
        cursor = self.dbh.cursor()
        try:
            cursor.execute(sql, params)
            rows = cursor.fetchall()
        finally:
            cursor.close()
        if not checks:
            if rows and rows[0][0]:
                return credentials[0]
            return None
        for row in rows:
            for (filter_chain, plain), stored in zip(checks, row):
                if not self.check_filtered(filter_chain, plain, stored):
                    break
            else:
                return credentials[0]
        return None
