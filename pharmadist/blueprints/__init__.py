"""Blueprints of the back office, one package per area."""
