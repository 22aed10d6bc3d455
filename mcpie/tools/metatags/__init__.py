"""MetaThief meta tag provider."""
