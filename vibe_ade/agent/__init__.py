"""Agent routing: slash parsing, cancellation, response shaping, backend selection."""
