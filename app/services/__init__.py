"""
Service Organization
====================

**application/**
  Services wired once per backend: ScheduleEngine, PlantLifecycleService,
  ReconciliationService.

**scheduling_context**
  SessionContext and ``build_scheduler``, which bind the application
  services to the server database or to device-local storage.

**container**
  ServiceContainer owning the server-side resources of the Flask app.
"""
