"""Creature images: database-backed store with a Redis read-through cache."""
