"""doorlog command-line actor."""
