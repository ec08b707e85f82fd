"""flowpulse - n8n execution dashboard.

Lists workflows, inspects executions as status-colored graphs and
aggregates execution history into daily success/failure metrics.
"""

__version__ = "0.1.0"
