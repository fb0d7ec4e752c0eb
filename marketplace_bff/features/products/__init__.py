"""Product catalogue and reviews."""
