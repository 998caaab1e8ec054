"""Billing module reusing short type names of the main application."""
