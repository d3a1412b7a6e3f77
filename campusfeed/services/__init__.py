"""
The `services` package holds the logic that does not live in the database:

- authorization
    Single decision point for role checks and the bio sanitization policy.
- chat
    In-memory chat history and fan-out to connected clients.
- storage
    Blob store used for avatar, banner and post images.
"""
