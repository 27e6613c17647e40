"""Task runner: owner-tagged shell tasks with tracked execution history."""
