"""Access to the external note index."""
