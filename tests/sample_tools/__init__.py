"""Tools used by the test suite."""
