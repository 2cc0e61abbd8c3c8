"""Research portal API: session authentication and access control."""
