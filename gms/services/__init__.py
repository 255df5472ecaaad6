"""Business services for the gym management system."""
