"""Build and release services invoked by the dispatcher's commands."""
