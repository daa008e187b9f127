"""
Core app for the Inkwell publishing platform.

Provides the base model, author roles, and the shared error taxonomy.
"""
