"""Orders and shopping carts."""
