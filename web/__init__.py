"""Web host for the CHIP-8 interpreter."""
