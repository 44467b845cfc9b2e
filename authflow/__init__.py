"""authflow - user accounts, authentication and email confirmation."""
