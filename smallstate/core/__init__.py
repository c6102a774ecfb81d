"""
Core package: transition tables, the state machine and its error types.

- states.py: per-state transition table (permit, ignore, handlers, resolve)
- state_machine.py: dispatch, reentrancy detection, reset, inspection
- transitions.py / handlers.py: value types stored in the tables
- tracing.py: leveled trace output over ``logging``
"""
