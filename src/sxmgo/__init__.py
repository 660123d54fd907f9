"""SXM GO gamification API."""
