"""Sub-command groups registered on the root ``cacheaside`` application."""
