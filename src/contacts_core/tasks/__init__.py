"""
Background task subsystem.

Components:
- task_models.py: data structures (Task)
- task_scheduler.py: single-worker FIFO executor with idle shutdown
- maintenance.py: consumer for the maintenance worker (aggregation passes, photo cleanup)
"""
