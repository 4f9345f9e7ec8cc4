"""Domain layer - pure business models with no external dependencies."""
