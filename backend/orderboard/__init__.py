"""Order board backend: Braip webhooks, kanban board API and live updates."""

__version__ = "0.1.0"
