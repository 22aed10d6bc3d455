"""Text statistics provider."""
