"""
The `core` package implements the application's operations on top of the
DAOs. Each function takes an open SQLAlchemy ``Session``, commits its own
work and raises errors from ``campusfeed.errors``.

Contents
--------
- accounts
    register, authenticate, get_profile, update_profile, promote, list_accounts
- sessions
    issue, resolve, destroy, purge_expired
- feed
    create_post, list_recent, delete_post
"""
