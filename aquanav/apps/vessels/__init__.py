"""Live vessel position lookup for project pages."""
