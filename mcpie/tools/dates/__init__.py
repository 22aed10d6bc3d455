"""Date formatting provider."""
