"""Command-line interface for variant_shredding."""
