"""Server-rendered HTML routes backed by the session cookie."""
