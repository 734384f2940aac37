"""doorlog actors."""
