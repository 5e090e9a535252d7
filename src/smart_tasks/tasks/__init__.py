"""
Task subsystem.

Components:
- task_models.py: data structures (Task, SubTask, TaskStatus, Priority) and derived views
- task_store.py: JSON document storage + legacy record migration
- task_repo.py: in-memory repository owning every mutation
- reminder_scheduler.py: polling scanner that emits due-date reminders
- task_api.py: small high-level helpers used by the presentation layer
"""
