"""Domain models, protocols, constants and errors."""
