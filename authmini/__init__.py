"""AuthMini: minimal authentication and user-administration service."""
