"""
Application Layer

Contains the services that orchestrate domain objects and infrastructure
adapters to fulfill play, skip, clear and queue requests.

Structure:
- services/: Resolver, pipeline, session registry and scheduler
- interfaces/: Port interfaces for infrastructure adapters
"""
