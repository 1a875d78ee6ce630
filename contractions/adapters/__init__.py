"""Storage adapters for the contractions feature."""
