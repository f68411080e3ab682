__version__ = "0.1"

from setuptools import setup, find_packages

setup(name="WareAuthen",
      version=__version__,
      description="Pluggable authentication for run-mode WSGI servlets",
      long_description="""\
Adds login handling to small run-mode WSGI applications: credentials
are checked by pluggable drivers, the login state is kept across
requests by pluggable stores, and run modes can be protected so that
anonymous users are sent to a login page first.

Drivers
-------

* ``Generic``: a dictionary of users, a list of credentials, or a
  callable

* ``HTPasswd``: Apache htpasswd files (using passlib)

* ``DBI``: any DB-API 2 database table

* ``Dummy``: accepts any username (for development)

Stores
------

* ``Cookie``: a checksummed cookie, no server side state

* ``Session``: the ``paste.session`` (or flup) session

Logins can time out after a period of inactivity, a fixed interval
since the login, or a custom rule.
""",
      classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Topic :: Internet :: WWW/HTTP",
        "Topic :: Internet :: WWW/HTTP :: Dynamic Content",
        "Topic :: Internet :: WWW/HTTP :: Session",
        "Topic :: Software Development :: Libraries :: Python Modules",
        ],
      keywords='web wsgi authentication login',
      license="MIT",
      packages=find_packages(exclude=['tests', 'tests.*']),
      zip_safe=False,
      python_requires='>=3.6',
      install_requires=[
        'Paste',
        'passlib',
        # paste.request parses forms with the cgi module
        'legacy-cgi; python_version >= "3.13"',
        ],
      extras_require={
        'testing': ['pytest'],
        },
      )
