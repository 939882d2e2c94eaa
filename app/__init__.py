"""HTTP entry point for the receipt scanner."""
