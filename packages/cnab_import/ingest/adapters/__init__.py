"""Format adapters: raw file records to ``DecodedLine`` objects."""
