"""Business logic: todos, recurrence engine, shared lists and analytics."""
