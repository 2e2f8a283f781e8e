"""
Waypoint Test Suite
===================

Test Organization
-----------------
- tests/unit/core/      : Event bus, configuration and logging infrastructure
- tests/unit/tutorial/  : Steps, sequences, model, presentations and controller

Testing Philosophy
------------------
- Unit tests only: fast, isolated, no external infrastructure
- Player input is simulated through SignalPresentation
- Use pytest markers (unit, core, tutorial) to select tests
- Follow AAA pattern: Arrange, Act, Assert
"""
