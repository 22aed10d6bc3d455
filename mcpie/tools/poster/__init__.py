"""ReadPo poster provider."""
