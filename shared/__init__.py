"""
Shared Kernel

Base classes, value objects, domain errors and the event plumbing shared
by the scheduling and booking contexts.
"""
