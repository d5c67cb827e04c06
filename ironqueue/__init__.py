"""IronMQ queue driver with optional payload encryption and push-queue support."""
