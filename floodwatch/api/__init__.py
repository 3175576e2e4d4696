"""FloodWatch web application."""
