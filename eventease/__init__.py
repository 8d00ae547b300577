"""EventEase: event management API."""
