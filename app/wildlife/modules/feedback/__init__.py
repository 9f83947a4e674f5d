"""Comments and ratings on creatures."""
