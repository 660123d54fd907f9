"""Points, challenges and badges."""
