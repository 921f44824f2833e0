"""Internal schema definitions."""
