"""Infrastructure layer — node storage, materialization cache, child cursors."""
