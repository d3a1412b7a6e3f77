"""
campusfeed: social-feed backend for an institutional community.

Accounts are restricted to the institutional email domain, authenticated
with server-side sessions and ranked by role (user / moderator / admin).
The package exposes a post feed with moderated deletion and a real-time
chat room with bounded history.
"""

__version__ = "0.1.0"
