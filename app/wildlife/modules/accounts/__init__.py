"""User accounts: authentication, registration and admin user management."""
