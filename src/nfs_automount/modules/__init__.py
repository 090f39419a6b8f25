"""Self-contained bricks used by the auto-mounter."""
