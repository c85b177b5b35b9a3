"""Per-browser client state: session, profile and repository list coordination."""
