"""CLI commands for variant_shredding."""
