"""
Domain layer for email processing business logic.

This layer contains:
- Data models (inbound email, notification notice, decode results)
- Business logic (email-to-notification pipeline)
- Result types (explicit success/failure handling)
"""
