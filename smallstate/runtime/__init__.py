"""
Runtime support owned by a state machine instance: the dispatch marker,
deferred change notifications, timers and auto-transitions.
"""
