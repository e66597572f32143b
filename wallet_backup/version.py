"""Wallet Backup Meta information.
   Wallet Backup encrypts a batch of wallet secret keys into a single
   portable file bound to a password and a wallet signature.
"""
__title__ = 'wallet_backup'
__description__ = (
   'Wallet Backup encrypts a batch of wallet secret keys into a '
   'single portable file bound to a password and a wallet signature.'
)
__version__ = '2.0.0'
__copyright__ = 'Copyright (c) 2023 Jesus Lara'
__author__ = 'Jesus Lara'
__author_email__ = 'jesuslarag@gmail.com'
__license__ = 'Apache-2.0'
