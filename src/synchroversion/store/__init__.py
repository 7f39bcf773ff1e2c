"""Asset storage: layout, locking and the capture/commit/purge engine."""
