"""HTTP API for the Constella services."""
