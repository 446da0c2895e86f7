"""Task entities and their status lifecycle."""
