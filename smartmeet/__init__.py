"""SmartMeet meeting session store."""

__version__ = "0.1.0"
