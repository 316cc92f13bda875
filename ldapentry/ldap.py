# This file is here so that we can patch the ldap module in our tests.
# python-ldap-faker patches ``ldapentry.ldap.initialize``, so everything that
# opens a connection must go through this module instead of ``ldap`` itself.
import ldap
from ldap import *  # noqa: F403

__version__ = ldap.__version__
