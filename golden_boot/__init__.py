"""Golden Boot fantasy league: draft, transfer window and standings backend."""
