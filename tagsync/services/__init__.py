"""Tag mirroring and release publishing services."""
