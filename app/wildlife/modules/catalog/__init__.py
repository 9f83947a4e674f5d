"""Categories and creatures: gallery pages, admin CRUD and sample data."""
