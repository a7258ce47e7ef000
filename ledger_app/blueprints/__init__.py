"""Blueprint packages: auth, suppliers, admin."""
