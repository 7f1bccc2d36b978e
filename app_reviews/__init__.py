"""App Reviews service package."""
