"""
The `api` package defines the backend's HTTP and WebSocket interface,
along with supporting utilities and data models.

It integrates FastAPI routing, cookie-based session authentication and
the chat broadcaster. The package ensures clean request/response
validation and funnels every role check through the authorization service.

Contents
--------
- fast_api
    Defines the FastAPI router with endpoints for:
        * Registration, login and logout
        * Own profile read/update (avatar and banner uploads) and bio preview
        * Privileged account listing and role promotion
        * Post feed: list, create (with optional image), delete

- chat
    WebSocket endpoint for the chat room:
        * Sends the history snapshot on connect
        * Broadcasts every inbound message to all connected clients

- models
    Pydantic schemas for request/response validation:
        * Credentials and registration payloads
        * Profile, account listing and feed post views

- utils
    Request dependencies:
        * `get_db`: per-request SQLAlchemy session
        * `get_current_user`: resolves the session cookie to an account
        * Session cookie helpers
"""
