"""Domain services: credential verification, session binding, access checks."""
