"""Makes the package importable when tests run from a source checkout."""
