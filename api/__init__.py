"""HTTP routers: voice commands, task pass-through and usage."""
