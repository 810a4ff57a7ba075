"""HTTP routers for the Agent Feedback API."""
