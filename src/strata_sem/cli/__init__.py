"""Command-line interface (``strata-sem``)."""
