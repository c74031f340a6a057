"""User phase developer environment steps."""
