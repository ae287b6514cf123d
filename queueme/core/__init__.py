"""Constants, error taxonomy and locking primitives shared across packages."""
