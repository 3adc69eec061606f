"""Budget Quest game session: scenarios, cycles, progress persistence."""
