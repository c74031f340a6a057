"""Root phase base system and account steps."""
