"""VaultKeeper Meta information.
   VaultKeeper stores service credentials with secrets encrypted under a user master key.
"""
__title__ = 'vaultkeeper'
__description__ = (
   'VaultKeeper stores service credentials with secret values '
   'encrypted under a user-held master key.'
)
__version__ = '0.3.0'
__copyright__ = 'Copyright (c) 2023 Jesus Lara'
__author__ = 'Jesus Lara'
__author_email__ = 'jesuslarag@gmail.com'
__license__ = 'Apache-2.0'
