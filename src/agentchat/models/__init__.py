"""Request, response and event data models."""
