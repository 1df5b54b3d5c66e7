"""Services - assembly, linting, rendering and orchestration."""
