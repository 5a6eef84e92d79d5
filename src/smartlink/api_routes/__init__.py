"""HTTP routes for the smart-link router."""
