"""Root phase security hardening steps."""
