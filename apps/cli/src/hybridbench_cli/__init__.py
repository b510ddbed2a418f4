"""Command-line host for the hybrid encryption benchmark."""
