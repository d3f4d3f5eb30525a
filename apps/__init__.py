"""Domain apps of the Vider marketplace."""
