"""Task.level - social gamified task lists."""
