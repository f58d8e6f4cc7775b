"""Support helpers for favsync."""
