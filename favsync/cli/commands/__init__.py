"""favsync CLI commands."""
