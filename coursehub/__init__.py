"""Course group chat and real-time video progress sync."""
