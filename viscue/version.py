"""Viscue Meta information.
   Viscue keeps a single-user vault of credentials encrypted at rest.
"""
__title__ = 'viscue'
__description__ = (
   'Viscue keeps a single-user vault of credentials encrypted at rest, '
   'unlocked by a master password and a device-held secret key.'
)
__version__ = '0.3.0'
__copyright__ = 'Copyright (c) 2024 Viscue Authors'
__author__ = 'Viscue Authors'
__license__ = 'Apache-2.0'
