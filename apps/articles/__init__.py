"""
Articles app for the Inkwell publishing platform.

Provides the article publication lifecycle: editorial state machine,
scheduled publishing, and author notifications.
"""
