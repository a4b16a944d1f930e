"""Bunkermuseum member management API."""
