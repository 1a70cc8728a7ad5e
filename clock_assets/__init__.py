"""Package data for the clock; images and sounds live in ``resources/``."""
