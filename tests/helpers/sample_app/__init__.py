"""Small host application whose source the generator scans in tests."""
